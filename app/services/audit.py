"""Audit event delivery.

Audit persistence belongs to the audit log service. The core only emits
events, after the triggering transaction has committed, through an
``AuditSink``. Delivery is best-effort: ``emit_audit_event`` never raises and
callers ignore its return value on purpose.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Protocol

from app.core.config import settings
from app.core.logging import audit_logger

logger = logging.getLogger(__name__)


class AuditEventType(str, Enum):
    """Audit events emitted by the core."""

    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_MISSED = "appointment_missed"
    PATIENT_RESTRICTED = "patient_restricted"
    REACCESS_SUBMITTED = "reaccess_submitted"
    REACCESS_APPROVED = "reaccess_approved"
    REACCESS_REJECTED = "reaccess_rejected"


@dataclass(frozen=True)
class AuditRecord:
    """A single audit event.

    Attributes:
        event_type: What happened
        description: Human-readable summary
        actor_id: Login account that triggered the event, if known
        actor_name: Display name of the actor
        actor_role: Role of the actor (admin, doctor, nurse, patient)
        target_type: Kind of entity affected (appointment, patient)
        target_id: ID of the affected entity
    """

    event_type: AuditEventType
    description: str
    actor_id: str | None = None
    actor_name: str | None = None
    actor_role: str | None = None
    target_type: str | None = None
    target_id: str | None = None


class AuditSink(Protocol):
    """Receiver of audit events."""

    def record(self, event: AuditRecord) -> None:
        """Deliver one event. May raise; callers treat delivery as best-effort."""
        ...


class LoggingAuditSink:
    """Writes audit events to the structured ``audit`` logger."""

    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = settings.audit_log_enabled if enabled is None else enabled

    def record(self, event: AuditRecord) -> None:
        if not self.enabled:
            return
        fields = asdict(event)
        fields["event_type"] = event.event_type.value
        audit_logger.log(**fields)


class RecordingAuditSink:
    """Keeps events in memory, in delivery order.

    Used by tests and by tooling that needs to inspect what was emitted.
    """

    def __init__(self) -> None:
        self.events: list[AuditRecord] = []

    def record(self, event: AuditRecord) -> None:
        self.events.append(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditRecord]:
        """Return the recorded events of one type."""
        return [e for e in self.events if e.event_type == event_type]


def emit_audit_event(sink: AuditSink, event: AuditRecord) -> bool:
    """Deliver an audit event without letting a failure escape.

    Returns:
        True if the sink accepted the event, False if delivery failed
    """
    try:
        sink.record(event)
    except Exception:
        logger.warning(
            f"Audit delivery failed for {event.event_type.value} "
            f"({event.target_type}:{event.target_id})",
            exc_info=True,
        )
        return False
    return True


def emit_all(sink: AuditSink, events: list[AuditRecord]) -> None:
    """Deliver events in order; each failure is isolated from the others."""
    for event in events:
        emit_audit_event(sink, event)
