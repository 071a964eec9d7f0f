# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any, Final, Literal

__all__ = (
    "Undefined",
    "UndefinedType",
    "Unset",
    "UnsetType",
    "is_empty",
    "is_sentinel",
    "is_unset",
)


class _SingletonMeta(type):
    """Metaclass that guarantees exactly one instance per subclass."""

    _cache: dict[type, SingletonType] = {}

    def __call__(cls, *a, **kw):
        if cls not in cls._cache:
            cls._cache[cls] = super().__call__(*a, **kw)
        return cls._cache[cls]


class SingletonType(metaclass=_SingletonMeta):
    """Base class for singleton sentinel types.

    Sentinels keep their identity across copies and evaluate falsy.
    """

    __slots__: tuple[str, ...] = ()

    def __deepcopy__(self, memo):
        return self

    def __copy__(self):
        return self

    # concrete classes *must* override the two methods below
    def __bool__(self) -> bool: ...
    def __repr__(self) -> str: ...


class UndefinedType(SingletonType):
    """Sentinel for a key missing from a mapping during nested lookups."""

    __slots__ = ()

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> Literal["Undefined"]:
        return "Undefined"

    def __reduce__(self):
        return "Undefined"


class UnsetType(SingletonType):
    """Sentinel for a field whose value has never been provided.

    Example:
        >>> field = Field("name", Constraint())
        >>> field.value is Unset
        True
    """

    __slots__ = ()

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> Literal["Unset"]:
        return "Unset"

    def __reduce__(self):
        return "Unset"


Undefined: Final = UndefinedType()
"""A key entirely missing from a namespace"""
Unset: Final = UnsetType()
"""A slot present but value not yet provided."""


def is_sentinel(value: Any) -> bool:
    """Check if a value is any sentinel (Undefined or Unset)."""
    return isinstance(value, (UndefinedType, UnsetType))


def is_unset(value: Any) -> bool:
    """Check if value is the Unset sentinel."""
    return isinstance(value, UnsetType)


def is_empty(value: Any) -> bool:
    """Empty for constraint purposes: a sentinel, None or the empty string."""
    return is_sentinel(value) or value is None or (
        isinstance(value, str) and value == ""
    )
