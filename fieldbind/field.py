# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""
Field: one named value slot with its own validation state.

A field holds the raw value exactly as it was set, and coerces it through
its constraint only when read. Every state change notifies the field's
listeners synchronously, in subscription order.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .config import settings
from .observation import (
    DiagnosticEvent,
    DiagnosticKind,
    DiagnosticSink,
    LoggingSink,
    emit_safely,
)
from .types import Unset, is_unset

if TYPE_CHECKING:
    from .constraint import Constraint

C = TypeVar("C", bound="Constraint")

__all__ = ("CssState", "Field", "FieldListener")

FieldListener = Callable[["Field"], Any]


class CssState:
    """Presentation tags composed into :attr:`Field.css_state`."""

    @staticmethod
    def dirty() -> str:
        return settings.CSS_DIRTY

    @staticmethod
    def valid() -> str:
        return settings.CSS_VALID

    @staticmethod
    def invalid() -> str:
        return settings.CSS_INVALID


class Field(Generic[C]):

    def __init__(
        self,
        name: str,
        constraint: C,
        *,
        sink: DiagnosticSink | None = None,
    ):
        self._name = name
        self._constraint = constraint
        self._sink = sink if sink is not None else LoggingSink()
        self._value: Any = Unset
        self._dirty: bool | None = None
        self._valid: bool | None = None
        self._invalid: bool | None = None
        self._invalid_reason: str | None = None
        self._listeners: list[FieldListener] = []

    def __repr__(self) -> str:
        return (
            f"Field(name={self._name!r}, value={self._value!r}, "
            f"dirty={self._dirty}, valid={self._valid})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def constraint(self) -> C:
        return self._constraint

    @property
    def value(self) -> Any:
        """The raw value coerced by the constraint, ``Unset`` if never set."""
        if is_unset(self._value):
            return Unset
        return self._constraint.coerce(self._value)

    @property
    def raw_value(self) -> Any:
        return self._value

    @property
    def dirty(self) -> bool | None:
        return self._dirty

    @property
    def valid(self) -> bool | None:
        return self._valid

    @property
    def invalid(self) -> bool | None:
        return self._invalid

    @property
    def invalid_reason(self) -> str | None:
        return self._invalid_reason

    @property
    def required(self) -> bool:
        return bool(self._constraint.required)

    @property
    def css_state(self) -> str:
        tags = (
            self._dirty and CssState.dirty(),
            self._invalid and CssState.invalid(),
            self._valid and CssState.valid(),
        )
        return " ".join(t for t in tags if t)

    def subscribe(self, listener: FieldListener) -> None:
        """Register ``listener`` for every state change of this field.

        There is no unsubscribe; listeners live as long as the field.
        """
        self._listeners.append(listener)

    def set_value(self, value: Any) -> None:
        self._value = value
        self._dirty = True
        self._notify()

    def set_dirty(self, toggle: bool) -> None:
        self._dirty = toggle
        self._notify()

    def set_valid(self, toggle: bool) -> None:
        self._valid = toggle
        self._invalid = not toggle
        self._notify()

    def set_invalid(self, toggle: bool) -> None:
        self._invalid = toggle
        self._valid = not toggle
        self._notify()

    def prune(self) -> None:
        """Forget the validation outcome, keep value and dirty flag."""
        self._reset_validation()
        self._notify()

    def clear(self) -> None:
        """Return the field to its freshly created state."""
        self._value = Unset
        self._dirty = None
        self._reset_validation()
        self._notify()

    async def validate(self) -> bool:
        """Validate the raw value against the constraint.

        A failed check is recorded in :attr:`invalid_reason`. An exception
        raised by the constraint is reported to the diagnostic sink and
        recorded as ``settings.UNKNOWN_ERROR_REASON``; it is not re-raised.

        Returns:
            bool: True if the value passed every check.
        """
        try:
            reason = await self._constraint.validate(self._value)
        except Exception as e:
            self._report(DiagnosticKind.FIELD_ERROR, error=e)
            self._invalid_reason = settings.UNKNOWN_ERROR_REASON
            self.set_invalid(True)
            return False

        self._invalid_reason = reason
        is_valid = not reason
        if not is_valid:
            self._report(DiagnosticKind.FIELD_INVALID, reason=reason)
        self.set_valid(is_valid)
        return is_valid

    def _reset_validation(self) -> None:
        self._valid = None
        self._invalid = None
        self._invalid_reason = None

    def _report(self, kind: DiagnosticKind, **kw) -> None:
        event = DiagnosticEvent(kind=kind, subject=self._name, **kw)
        emit_safely(self._sink, event)

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            listener(self)
