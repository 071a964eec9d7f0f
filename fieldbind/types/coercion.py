# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tagged value coercion used by fields to turn raw input into typed values."""

from __future__ import annotations

import math
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .._errors import ConfigurationError

__all__ = (
    "CoercionKind",
    "Coercion",
)


class CoercionKind(str, Enum):
    """Kinds of conversion a constraint can apply to a raw value.

    Attributes:
        STRING: Render the raw value as text.
        NUMBER: Parse the raw value as an int or float, ``nan`` if it is not
            numeric.
        BOOLEAN: Truthiness of the raw value.
        SYMBOL: Interned text token, comparable by identity.
        CUSTOM: Apply a caller supplied converter.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SYMBOL = "symbol"
    CUSTOM = "custom"


_BUILTIN_KINDS: dict[Any, CoercionKind] = {
    str: CoercionKind.STRING,
    int: CoercionKind.NUMBER,
    float: CoercionKind.NUMBER,
    bool: CoercionKind.BOOLEAN,
}


@dataclass(slots=True, frozen=True)
class Coercion:
    kind: CoercionKind = CoercionKind.STRING
    converter: Callable[[Any], Any] | None = None

    def __post_init__(self):
        if self.kind is CoercionKind.CUSTOM and not callable(self.converter):
            raise ConfigurationError(
                "Custom coercion requires a callable converter"
            )
        if self.kind is not CoercionKind.CUSTOM and self.converter is not None:
            raise ConfigurationError(
                f"Coercion kind '{self.kind.value}' does not take a converter"
            )

    @classmethod
    def custom(cls, converter: Callable[[Any], Any]) -> Coercion:
        return cls(CoercionKind.CUSTOM, converter)

    @classmethod
    def resolve(cls, target: Any) -> Coercion:
        """Normalize anything accepted as a constraint ``type`` option.

        Args:
            target: A ``Coercion``, a ``CoercionKind`` (or its string value),
                one of the builtins ``str``/``int``/``float``/``bool``, or
                any other callable which becomes a custom converter.

        Raises:
            ConfigurationError: If ``target`` is none of the above.
        """
        if target is None:
            return cls()
        if isinstance(target, Coercion):
            return target
        if isinstance(target, CoercionKind):
            return cls(target)
        if isinstance(target, str):
            try:
                return cls(CoercionKind(target.strip().lower()))
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown coercion kind: {target}", cause=e
                ) from e
        if isinstance(target, type) and target in _BUILTIN_KINDS:
            return cls(_BUILTIN_KINDS[target])
        if callable(target):
            return cls.custom(target)
        raise ConfigurationError(
            f"Unsupported coercion target: {target!r}",
            details={"type": type(target).__name__},
        )

    def apply(self, raw: Any) -> Any:
        match self.kind:
            case CoercionKind.STRING:
                return _to_string(raw)
            case CoercionKind.NUMBER:
                return _to_number(raw)
            case CoercionKind.BOOLEAN:
                return bool(raw)
            case CoercionKind.SYMBOL:
                return sys.intern(_to_string(raw))
            case CoercionKind.CUSTOM:
                return self.converter(raw)


def _to_string(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def _to_number(raw: Any) -> int | float:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan
