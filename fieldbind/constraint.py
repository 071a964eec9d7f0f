# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ._errors import ConfigurationError
from .concurrency import maybe_await
from .types import Coercion, is_empty

__all__ = (
    "Constraint",
    "ExtraValidation",
    "REQUIRED",
    "PATTERN",
    "EXTRA_VALIDATION",
)

REQUIRED = "required"
PATTERN = "pattern"
EXTRA_VALIDATION = "extra-validation"

ExtraValidation = Callable[
    [Any], Union[Awaitable[Union[bool, str]], bool, str]
]


class Constraint(BaseModel):
    """Validation rule set for a single field.

    A constraint is immutable once built. Options:

    - ``type``: coercion applied when a field's value is read, see
      :meth:`Coercion.resolve` for what is accepted.
    - ``required``: empty values (``None``, ``Unset``, ``""``) fail with
      ``"required"`` instead of passing.
    - ``pattern``: regex searched in the raw value, ``"pattern"`` on miss.
    - ``extra_validation``: sync or async predicate over the raw value,
      ``"extra-validation"`` when falsy. A string result is used as the
      failure reason itself.

    Pattern and extra validation never run for an empty optional value.
    Subclasses may declare more options as pydantic fields.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        populate_by_name=True,
    )

    coercion: Coercion = Field(default_factory=Coercion, alias="type")
    required: bool | None = None
    pattern: re.Pattern | None = None
    extra_validation: ExtraValidation | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None, **options):
        """Build a constraint from a partial configuration mapping."""
        return cls(**{**(config or {}), **options})

    @classmethod
    def option_names(cls) -> set[str]:
        names = set(cls.model_fields)
        names.update(
            f.alias for f in cls.model_fields.values() if f.alias is not None
        )
        return names

    @model_validator(mode="before")
    @classmethod
    def _reject_unknown_options(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            unknown = sorted(set(data) - cls.option_names())
            if unknown:
                raise ConfigurationError(
                    f"Unknown constraint options: {', '.join(unknown)}",
                    details={"unknown": unknown},
                )
        return data

    @field_validator("coercion", mode="before")
    @classmethod
    def _resolve_coercion(cls, v: Any) -> Coercion:
        return Coercion.resolve(v)

    @field_validator("pattern", mode="before")
    @classmethod
    def _compile_pattern(cls, v: Any) -> re.Pattern | None:
        if v is None or isinstance(v, re.Pattern):
            return v
        if isinstance(v, str):
            try:
                return re.compile(v)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid pattern: {v}", cause=e
                ) from e
        raise ConfigurationError(
            f"Pattern must be a string or compiled regex, got {type(v).__name__}"
        )

    @field_validator("extra_validation", mode="before")
    @classmethod
    def _check_callable(cls, v: Any) -> Any:
        if v is not None and not callable(v):
            raise ConfigurationError(
                "extra_validation must be callable",
                details={"type": type(v).__name__},
            )
        return v

    async def validate(self, value: Any) -> str | None:
        """Check ``value`` and return the failure reason, or None if valid.

        Exceptions raised by ``extra_validation`` are not caught.
        """
        if is_empty(value):
            return REQUIRED if self.required else None

        if self.pattern is not None and not self.pattern.search(str(value)):
            return PATTERN

        if self.extra_validation is not None:
            result = await maybe_await(self.extra_validation(value))
            if isinstance(result, str):
                return result or EXTRA_VALIDATION
            if not result:
                return EXTRA_VALIDATION

        return None

    def coerce(self, raw: Any) -> Any:
        return self.coercion.apply(raw)
