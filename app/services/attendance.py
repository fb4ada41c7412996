"""Attendance tracking and the missed-appointment restriction rule.

Marking an appointment ``missed`` increments the patient's consecutive-missed
counter; once it reaches ``RESTRICTION_THRESHOLD`` the account is restricted
and the patient cannot be booked until a re-access request is approved.
Marking ``completed`` resets the counter but does not lift a restriction.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.transaction import atomic
from app.models.appointment import Appointment, AppointmentStatus
from app.services.audit import (
    AuditEventType,
    AuditRecord,
    AuditSink,
    LoggingAuditSink,
    emit_all,
)
from app.services.directory import AccountState, PatientDirectory
from app.services.errors import NotFoundError, ValidationError
from app.services.scheduling import SchedulingService

logger = logging.getLogger(__name__)

# Consecutive missed appointments that restrict an account
RESTRICTION_THRESHOLD = 3

ATTENDANCE_OUTCOMES = (AppointmentStatus.COMPLETED, AppointmentStatus.MISSED)


@dataclass
class AttendanceOutcome:
    """Result of recording attendance for one appointment.

    Attributes:
        appointment: The updated appointment
        missed_count: Patient's consecutive-missed counter after the update
        patient_restricted: True if this update restricted the account
    """

    appointment: Appointment
    missed_count: int
    patient_restricted: bool = False
    events: list[AuditRecord] = field(default_factory=list, repr=False)


class AttendanceService:
    """Records attendance outcomes and applies the restriction rule."""

    def __init__(self, session: AsyncSession, audit_sink: AuditSink | None = None):
        self.session = session
        self.audit_sink = audit_sink or LoggingAuditSink()
        self.patients = PatientDirectory(session)
        self.appointments = SchedulingService(session, self.audit_sink)

    async def set_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus | str,
        actor_id: str | None = None,
    ) -> AttendanceOutcome:
        """Mark a scheduled appointment completed or missed.

        The status write and the patient counter/status writes commit together
        or not at all. Audit events go out only after the commit.

        Raises:
            ValidationError: Status other than completed/missed, or the
                appointment is no longer scheduled
            NotFoundError: Unknown appointment
        """
        try:
            status = AppointmentStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Invalid attendance status: {new_status}",
                status=str(new_status),
            ) from None
        if status not in ATTENDANCE_OUTCOMES:
            raise ValidationError(
                "Attendance can only be recorded as completed or missed",
                status=status.value,
            )

        async with atomic(self.session):
            appointment = await self.appointments.get_appointment(
                appointment_id, for_update=True
            )
            if not appointment:
                raise NotFoundError("Appointment not found", appointment_id=appointment_id)

            if appointment.is_terminal:
                raise ValidationError(
                    f"Appointment is already {AppointmentStatus(appointment.status).value}",
                    appointment_id=appointment_id,
                )

            appointment.status = status
            await self.session.flush()

            if status == AppointmentStatus.MISSED:
                outcome = await self._record_missed(appointment, actor_id)
            else:
                outcome = await self._record_completed(appointment)

        emit_all(self.audit_sink, outcome.events)
        if outcome.patient_restricted:
            logger.info(
                f"Patient {appointment.patient_id} restricted after "
                f"{outcome.missed_count} consecutive missed appointments"
            )

        return outcome

    async def _record_missed(
        self,
        appointment: Appointment,
        actor_id: str | None,
    ) -> AttendanceOutcome:
        patient_id = appointment.patient_id
        missed_count = await self.patients.increment_missed(patient_id)

        outcome = AttendanceOutcome(appointment=appointment, missed_count=missed_count)

        # Re-derived from the counter on every miss
        if missed_count >= RESTRICTION_THRESHOLD:
            await self.patients.restrict(patient_id)
            patient = await self.patients.require_patient(patient_id)
            outcome.patient_restricted = True
            outcome.events.append(
                AuditRecord(
                    event_type=AuditEventType.PATIENT_RESTRICTED,
                    description=(
                        f"Patient account restricted due to {RESTRICTION_THRESHOLD}+ "
                        f"missed appointments: {patient.full_name}"
                    ),
                    actor_id=actor_id,
                    target_type="patient",
                    target_id=patient_id,
                )
            )

        outcome.events.append(
            AuditRecord(
                event_type=AuditEventType.APPOINTMENT_MISSED,
                description="Appointment marked as missed",
                actor_id=actor_id,
                target_type="appointment",
                target_id=appointment.id,
            )
        )
        return outcome

    async def _record_completed(self, appointment: Appointment) -> AttendanceOutcome:
        # A completed visit forgives earlier misses; an existing restriction
        # stays until a re-access request is approved.
        await self.patients.reset_missed(appointment.patient_id)
        return AttendanceOutcome(appointment=appointment, missed_count=0)

    async def account_state(self, patient_id: str) -> AccountState:
        """Read a patient's account status and consecutive-missed counter."""
        return await self.patients.get_account_state(patient_id)
