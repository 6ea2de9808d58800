"""Audit event sink.

The scanner and redactor report what they did through a ``Notifier``. The
default implementation writes events to the standard logging system;
callers that keep an audit trail plug in their own sink.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

SCAN_COMPLETED = "scan.completed"
SCAN_FILE_ERROR = "scan.file_error"
REDACTION_COMPLETED = "redaction.completed"
BACKUP_RESTORED = "backup.restored"
BACKUP_REMOVED = "backup.removed"


class AuditEvent(BaseModel):
    """One notable action taken by the core."""

    model_config = ConfigDict(frozen=True)

    event_type: str = Field(..., min_length=1, description="Machine-readable event category.")
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class Notifier(Protocol):
    """Receives audit events."""

    def notify(self, event: AuditEvent) -> None:  # pragma: no cover - protocol
        ...


class LoggingNotifier:
    """Write events to a logger."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._log = log or logger
        self._level = level

    def notify(self, event: AuditEvent) -> None:
        level = logging.WARNING if event.event_type == SCAN_FILE_ERROR else self._level
        self._log.log(level, "%s %s", event.event_type, event.payload)


class NullNotifier:
    """Discard every event."""

    def notify(self, event: AuditEvent) -> None:
        return None


def emit(notifier: Notifier, event_type: str, **payload: Any) -> None:
    """Send an event, logging (never raising) if the sink fails."""
    try:
        notifier.notify(AuditEvent(event_type=event_type, payload=payload))
    except Exception:
        logger.exception("Notifier failed to handle %s event", event_type)
