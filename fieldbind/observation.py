# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Diagnostic events emitted by validation, and the sinks that receive them.

Validation never logs on its own. Fields and models hand a
:class:`DiagnosticEvent` to whatever :class:`DiagnosticSink` they were built
with; :class:`LoggingSink` is the default and routes events to the
``fieldbind`` logger.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .config import settings

logger = logging.getLogger(__name__)

__all__ = (
    "DiagnosticKind",
    "DiagnosticEvent",
    "DiagnosticSink",
    "LoggingSink",
    "CollectingSink",
    "emit_safely",
)


class DiagnosticKind(str, Enum):
    """Kinds of diagnostic event.

    Attributes:
        FIELD_INVALID: A field failed one of its constraint checks.
        FIELD_ERROR: A field's validation raised unexpectedly.
        VALIDATOR_FAILED: A cross-field validator returned false.
        LOAD_IGNORED: Loaded data contained keys matching no field.
    """

    FIELD_INVALID = "field.invalid"
    FIELD_ERROR = "field.error"
    VALIDATOR_FAILED = "model.validator_failed"
    LOAD_IGNORED = "model.load.ignored"


class DiagnosticEvent(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: DiagnosticKind
    subject: str
    """Field path or validator name the event is about."""

    reason: str | None = None
    error: BaseException | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @field_serializer("error")
    def _serialize_error(self, error: BaseException | None) -> str | None:
        return repr(error) if error is not None else None

    def message(self) -> str:
        match self.kind:
            case DiagnosticKind.FIELD_INVALID:
                return f"Not valid [{self.subject}] reason [{self.reason}]"
            case DiagnosticKind.FIELD_ERROR:
                return (
                    f"Error when validating field {self.subject.upper()}: "
                    f"{self.error!r}"
                )
            case DiagnosticKind.VALIDATOR_FAILED:
                return f"Not validated by [{self.subject}]"
            case DiagnosticKind.LOAD_IGNORED:
                return (
                    f"Ignored keys while loading [{self.subject}]: "
                    f"{self.details.get('keys')}"
                )
        return f"{self.kind.value} [{self.subject}]"


@runtime_checkable
class DiagnosticSink(Protocol):
    def emit(self, event: DiagnosticEvent) -> None: ...


class LoggingSink:
    """Write diagnostic events to a stdlib logger.

    ``field.error`` events are logged at WARNING with the original exception
    attached; everything else at ``level`` (``settings.DIAGNOSTIC_LOG_LEVEL``
    unless given).
    """

    def __init__(
        self, logger: logging.Logger | None = None, level: int | None = None
    ):
        self.logger = logger or logging.getLogger("fieldbind")
        self.level = settings.DIAGNOSTIC_LOG_LEVEL if level is None else level

    def emit(self, event: DiagnosticEvent) -> None:
        if event.kind is DiagnosticKind.FIELD_ERROR:
            exc_info = (
                (type(event.error), event.error, event.error.__traceback__)
                if event.error is not None
                else None
            )
            self.logger.warning(event.message(), exc_info=exc_info)
            return
        self.logger.log(self.level, event.message())


class CollectingSink:
    """Keep every emitted event in memory, in emission order."""

    def __init__(self):
        self.events: list[DiagnosticEvent] = []

    def emit(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: DiagnosticKind | str) -> list[DiagnosticEvent]:
        kind = DiagnosticKind(kind)
        return [e for e in self.events if e.kind is kind]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


def emit_safely(sink: DiagnosticSink, event: DiagnosticEvent) -> None:
    """Deliver ``event`` to ``sink``; a failing sink is logged, not raised."""
    try:
        sink.emit(event)
    except Exception as e:
        logger.error(f"Error in diagnostic sink: {e}", exc_info=True)
