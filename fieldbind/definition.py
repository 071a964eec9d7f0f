# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from ._errors import ConfigurationError
from .constraint import Constraint
from .model import Model, ModelValidator, NamedValidator
from .nested import is_prefix, split_path
from .observation import DiagnosticSink

C = TypeVar("C", bound=Constraint)

__all__ = ("Definition", "DefineCallback")

DefineCallback = Callable[
    [
        Callable[..., None],
        Callable[[str, ModelValidator], None],
    ],
    None,
]


class Definition(Generic[C]):
    """Registry of field constraints and cross-field validators.

    A definition is configured once and then used as a factory: every call
    to :meth:`model` returns an independent :class:`Model`.

    Example:
        signup = Definition().configure(lambda define, validate: (
            define("email", required=True, pattern=r"^[^@]+@[^@]+$"),
            define("age", type=int),
            define("password.value", required=True),
            define("password.confirm", required=True),
            validate("passwords-match", lambda m: (
                m.get("password.value") == m.get("password.confirm")
            )),
        ))
        model = signup.model()
    """

    def __init__(
        self,
        constraint_cls: type[C] = Constraint,
        *,
        sink: DiagnosticSink | None = None,
    ):
        if not (
            isinstance(constraint_cls, type)
            and issubclass(constraint_cls, Constraint)
        ):
            raise ConfigurationError(
                "constraint_cls must be a Constraint subclass",
                details={"constraint_cls": repr(constraint_cls)},
            )
        self._constraint_cls = constraint_cls
        self._sink = sink
        self._definitions: dict[str, C] = {}
        self._order: list[str] = []
        self._validators: list[NamedValidator] = []

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(self._order)

    @property
    def validator_names(self) -> list[str]:
        return [v.name for v in self._validators]

    def constraint(self, path: str) -> C:
        return self._definitions[path]

    def configure(self, callback: DefineCallback) -> Definition[C]:
        """Run ``callback`` with the ``define`` and ``validate`` registrars.

        May be called repeatedly; registrations accumulate.
        """
        callback(self._define, self._register_validator)
        return self

    def _define(
        self,
        path: str,
        config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> None:
        split_path(path)
        constraint = self._constraint_cls.from_config(config, **options)
        if path not in self._definitions:
            for other in self._order:
                if is_prefix(other, path) or is_prefix(path, other):
                    raise ConfigurationError(
                        f"Field path '{path}' overlaps with '{other}'",
                        details={"path": path, "other": other},
                    )
            self._order.append(path)
        self._definitions[path] = constraint

    def _register_validator(self, name: str, validator: ModelValidator) -> None:
        if not callable(validator):
            raise ConfigurationError(
                f"Validator '{name}' is not callable",
                details={"name": name},
            )
        self._validators.append(NamedValidator(name, validator))

    def model(self) -> Model[C]:
        return Model(
            dict(self._definitions),
            list(self._validators),
            order=list(self._order),
            sink=self._sink,
        )
