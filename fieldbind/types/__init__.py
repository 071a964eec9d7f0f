from ._sentinel import (
    Undefined,
    UndefinedType,
    Unset,
    UnsetType,
    is_empty,
    is_sentinel,
    is_unset,
)
from .coercion import Coercion, CoercionKind

__all__ = (
    "Coercion",
    "CoercionKind",
    "Undefined",
    "UndefinedType",
    "Unset",
    "UnsetType",
    "is_empty",
    "is_sentinel",
    "is_unset",
)
