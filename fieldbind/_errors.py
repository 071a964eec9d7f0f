# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from typing import Any, ClassVar

__all__ = (
    "FieldbindError",
    "ConfigurationError",
    "FieldNotFoundError",
)


class FieldbindError(Exception):
    default_message: ClassVar[str] = "fieldbind error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause  # preserves traceback
        self.message = message or self.default_message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        data = {
            "error": self.__class__.__name__,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }
        if include_cause and (cause := self.get_cause()):
            data["cause"] = repr(cause)
        return data

    def get_cause(self) -> Exception | None:
        """Get the cause of this error, if any."""
        return self.__cause__ if hasattr(self, "__cause__") else None


class ConfigurationError(FieldbindError):
    """Raised when a definition or constraint is malformed."""

    default_message = "Invalid configuration"


class FieldNotFoundError(FieldbindError, KeyError):
    """Raised when a model has no field with the requested name."""

    default_message = "Field not found"

    @classmethod
    def for_name(cls, name: str, *, known: list[str] | None = None):
        details = {"name": name}
        if known is not None:
            details["known"] = known
        return cls(f"No field named '{name}'", details=details)
