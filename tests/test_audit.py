"""Tests for best-effort audit delivery."""

import logging

import pytest

from app.core.logging import StructuredFormatter
from app.services.audit import (
    AuditEventType,
    AuditRecord,
    LoggingAuditSink,
    RecordingAuditSink,
    emit_all,
    emit_audit_event,
)


class BrokenSink:
    """Sink that always fails."""

    def record(self, event: AuditRecord) -> None:
        raise RuntimeError("sink offline")


@pytest.fixture
def missed_event() -> AuditRecord:
    return AuditRecord(
        event_type=AuditEventType.APPOINTMENT_MISSED,
        description="Appointment marked as missed",
        actor_id="nurse-1",
        actor_role="nurse",
        target_type="appointment",
        target_id="appt-1",
    )


def test_emit_returns_true_on_delivery(missed_event: AuditRecord) -> None:
    """Delivered events are recorded in order."""
    sink = RecordingAuditSink()

    assert emit_audit_event(sink, missed_event) is True
    assert sink.events == [missed_event]


def test_emit_swallows_sink_failure(
    missed_event: AuditRecord, caplog: pytest.LogCaptureFixture
) -> None:
    """A failing sink is logged at WARNING and never raises."""
    with caplog.at_level(logging.WARNING, logger="app.services.audit"):
        delivered = emit_audit_event(BrokenSink(), missed_event)

    assert delivered is False
    assert "appointment_missed" in caplog.text


def test_emit_all_isolates_failures(missed_event: AuditRecord) -> None:
    """One failed delivery does not stop the rest."""

    class FlakySink(RecordingAuditSink):
        def record(self, event: AuditRecord) -> None:
            if event.event_type == AuditEventType.PATIENT_RESTRICTED:
                raise RuntimeError("flaky")
            super().record(event)

    restricted = AuditRecord(
        event_type=AuditEventType.PATIENT_RESTRICTED,
        description="Patient account restricted",
    )
    sink = FlakySink()

    emit_all(sink, [restricted, missed_event])

    assert sink.events == [missed_event]


def test_logging_sink_writes_audit_logger(
    missed_event: AuditRecord, caplog: pytest.LogCaptureFixture
) -> None:
    """The default sink writes structured records to the audit logger."""
    with caplog.at_level(logging.INFO, logger="audit"):
        LoggingAuditSink(enabled=True).record(missed_event)

    record = next(r for r in caplog.records if r.name == "audit")
    assert record.event_type == "appointment_missed"
    assert record.actor_id == "nurse-1"
    assert "target=appointment:appt-1" in record.getMessage()
    assert "event_type=appointment_missed" in StructuredFormatter().format(record)


def test_disabled_logging_sink_is_silent(
    missed_event: AuditRecord, caplog: pytest.LogCaptureFixture
) -> None:
    """Audit logging can be switched off by configuration."""
    with caplog.at_level(logging.INFO, logger="audit"):
        LoggingAuditSink(enabled=False).record(missed_event)

    assert not [r for r in caplog.records if r.name == "audit"]
