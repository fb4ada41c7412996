"""Scheduling service for doctor appointments.

Creates, reschedules, cancels and deletes appointments while keeping every
doctor's scheduled appointments at least ``CONFLICT_WINDOW`` apart.

Double-booking is prevented in two layers:
- each create/reschedule locks the doctor's row for the rest of its
  transaction, so concurrent conflict checks for one doctor run one at a time
- a partial unique index rejects two scheduled rows at the same instant
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.transaction import atomic
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.patient import AccountStatus, Patient
from app.services.audit import (
    AuditEventType,
    AuditRecord,
    AuditSink,
    LoggingAuditSink,
    emit_audit_event,
)
from app.services.directory import DoctorDirectory, PatientDirectory
from app.services.errors import (
    NotFoundError,
    PatientRestrictedError,
    SchedulingConflictError,
    ValidationError,
)
from app.utils.time import format_display

logger = logging.getLogger(__name__)

# Minimum spacing between two scheduled appointments of the same doctor
CONFLICT_WINDOW = timedelta(minutes=15)


@dataclass(frozen=True)
class ConflictingAppointment:
    """Scheduled appointment that blocks a requested time."""

    appointment_id: str
    scheduled_at: datetime
    patient_name: str | None


@dataclass(frozen=True)
class AppointmentListing:
    """Appointment row joined with the names shown in schedules."""

    appointment: Appointment
    patient_name: str | None
    patient_phone: str | None
    patient_account_status: AccountStatus | None
    doctor_name: str | None


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Raises:
        ValidationError: If the datetime carries no timezone
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(
            "Appointment time must include a timezone",
            scheduled_at=value.isoformat(),
        )
    return value.astimezone(timezone.utc)


def within_conflict_window(first: datetime, second: datetime) -> bool:
    """Check whether two appointment times are closer than the window.

    Symmetric: an earlier and a later neighbour block equally. Naive values
    (as returned by SQLite) are read as UTC.
    """
    if first.tzinfo is None:
        first = first.replace(tzinfo=timezone.utc)
    if second.tzinfo is None:
        second = second.replace(tzinfo=timezone.utc)
    return abs(first - second) < CONFLICT_WINDOW


class SchedulingService:
    """Service for creating and maintaining appointments."""

    def __init__(self, session: AsyncSession, audit_sink: AuditSink | None = None):
        self.session = session
        self.audit_sink = audit_sink or LoggingAuditSink()
        self.patients = PatientDirectory(session)
        self.doctors = DoctorDirectory(session)

    async def get_appointment(
        self,
        appointment_id: str,
        for_update: bool = False,
    ) -> Appointment | None:
        """Get a single appointment by ID, optionally locking its row."""
        query = (
            select(Appointment)
            .where(Appointment.id == appointment_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_conflict(
        self,
        doctor_id: str,
        when: datetime,
        exclude_appointment_id: str | None = None,
    ) -> ConflictingAppointment | None:
        """Find a scheduled appointment for this doctor too close to ``when``.

        Only the candidates inside the window are loaded; the exact
        comparison happens in Python so it behaves the same on every backend.
        """
        query = (
            select(Appointment.id, Appointment.scheduled_at, Patient.full_name)
            .join(Appointment.patient, isouter=True)
            .where(
                Appointment.doctor_id == doctor_id,
                Appointment.status == AppointmentStatus.SCHEDULED,
                Appointment.scheduled_at > when - CONFLICT_WINDOW,
                Appointment.scheduled_at < when + CONFLICT_WINDOW,
            )
            .order_by(Appointment.scheduled_at)
        )
        if exclude_appointment_id is not None:
            query = query.where(Appointment.id != exclude_appointment_id)

        result = await self.session.execute(query)
        for row in result:
            if within_conflict_window(row.scheduled_at, when):
                return ConflictingAppointment(
                    appointment_id=row.id,
                    scheduled_at=row.scheduled_at,
                    patient_name=row.full_name,
                )
        return None

    async def _ensure_slot_free(
        self,
        doctor_id: str,
        when: datetime,
        exclude_appointment_id: str | None = None,
    ) -> None:
        conflict = await self.find_conflict(doctor_id, when, exclude_appointment_id)
        if conflict:
            raise SchedulingConflictError(
                conflict_time=conflict.scheduled_at,
                patient_name=conflict.patient_name,
            )

    async def _flush_slot(self, when: datetime) -> None:
        """Flush pending writes, reporting a slot collision as a conflict."""
        try:
            await self.session.flush()
        except IntegrityError as exc:
            logger.info(f"Slot collision rejected by database at {when.isoformat()}")
            raise SchedulingConflictError(conflict_time=when) from exc

    async def create_appointment(
        self,
        doctor_user_id: str,
        patient_id: str,
        scheduled_at: datetime,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> Appointment:
        """Book an appointment for a doctor.

        Args:
            doctor_user_id: Staff login account of the doctor
            patient_id: Patient being booked
            scheduled_at: Timezone-aware appointment time
            reason: Free-text reason for the visit
            actor_id: Login account performing the booking, for the audit trail

        Raises:
            ValidationError: Missing IDs or a naive datetime
            NotFoundError: Unknown doctor or patient
            PatientRestrictedError: The patient's account is restricted
            SchedulingConflictError: Another scheduled appointment is too close
        """
        if not doctor_user_id or not patient_id:
            raise ValidationError("Doctor and patient are required")
        when = ensure_utc(scheduled_at)

        async with atomic(self.session):
            doctor_id = await self.doctors.resolve_doctor(doctor_user_id)

            # Held until commit so a concurrent miss cannot restrict the patient
            # between this check and the insert
            account = await self.patients.get_account_state(patient_id, for_update=True)
            if account.is_restricted:
                raise PatientRestrictedError(
                    "Cannot create appointment: patient account is restricted",
                    patient_id=patient_id,
                )

            await self.doctors.lock_schedule(doctor_id)
            await self._ensure_slot_free(doctor_id, when)

            appointment = Appointment(
                patient_id=patient_id,
                doctor_id=doctor_id,
                scheduled_at=when,
                reason=reason or "",
                status=AppointmentStatus.SCHEDULED,
            )
            self.session.add(appointment)
            await self._flush_slot(when)

        emit_audit_event(
            self.audit_sink,
            AuditRecord(
                event_type=AuditEventType.APPOINTMENT_CREATED,
                description=f"New appointment scheduled for {format_display(when)}",
                actor_id=actor_id,
                target_type="appointment",
                target_id=appointment.id,
            ),
        )
        logger.info(f"Appointment {appointment.id} created for doctor {doctor_id}")

        return appointment

    async def reschedule_appointment(
        self,
        appointment_id: str,
        new_scheduled_at: datetime,
        reason: str | None = None,
    ) -> Appointment:
        """Move a scheduled appointment to a new time.

        The appointment's own current slot never counts as a conflict. Status,
        patient and doctor are left unchanged.
        """
        when = ensure_utc(new_scheduled_at)

        async with atomic(self.session):
            appointment = await self.get_appointment(appointment_id, for_update=True)
            if not appointment:
                raise NotFoundError("Appointment not found", appointment_id=appointment_id)

            if appointment.status != AppointmentStatus.SCHEDULED:
                raise ValidationError(
                    f"Only scheduled appointments can be rescheduled "
                    f"(current status: {AppointmentStatus(appointment.status).value})",
                    appointment_id=appointment_id,
                )

            await self.doctors.lock_schedule(appointment.doctor_id)
            await self._ensure_slot_free(
                appointment.doctor_id, when, exclude_appointment_id=appointment.id
            )

            appointment.scheduled_at = when
            appointment.reason = reason or ""
            await self._flush_slot(when)

        logger.info(f"Appointment {appointment.id} moved to {when.isoformat()}")
        return appointment

    async def cancel_appointment(self, appointment_id: str) -> Appointment:
        """Cancel an appointment. Cancelling never counts as a missed visit."""
        async with atomic(self.session):
            appointment = await self.get_appointment(appointment_id, for_update=True)
            if not appointment:
                raise NotFoundError("Appointment not found", appointment_id=appointment_id)

            if appointment.is_terminal:
                if appointment.status == AppointmentStatus.CANCELLED:
                    return appointment
                raise ValidationError(
                    "Cannot cancel a completed or missed appointment",
                    appointment_id=appointment_id,
                )

            appointment.status = AppointmentStatus.CANCELLED

        return appointment

    async def delete_appointment(self, appointment_id: str) -> None:
        """Hard-delete an appointment (administrative correction)."""
        async with atomic(self.session):
            appointment = await self.get_appointment(appointment_id, for_update=True)
            if not appointment:
                raise NotFoundError("Appointment not found", appointment_id=appointment_id)
            await self.session.delete(appointment)

        logger.info(f"Appointment {appointment_id} deleted")

    async def list_appointments(
        self,
        doctor_user_id: str | None = None,
        patient_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[AppointmentListing]:
        """List appointments, newest first, with patient and doctor names.

        An unknown ``doctor_user_id`` matches nothing.
        """
        query = (
            select(
                Appointment,
                Patient.full_name,
                Patient.phone_number,
                Patient.account_status,
                Doctor.full_name.label("doctor_name"),
            )
            .join(Appointment.patient, isouter=True)
            .join(Appointment.doctor, isouter=True)
        )

        if doctor_user_id:
            query = query.where(Doctor.user_id == doctor_user_id)
        if patient_id:
            query = query.where(Appointment.patient_id == patient_id)
        if status:
            query = query.where(Appointment.status == status)

        query = query.order_by(Appointment.scheduled_at.desc())

        result = await self.session.execute(query)
        return [
            AppointmentListing(
                appointment=row.Appointment,
                patient_name=row.full_name,
                patient_phone=row.phone_number,
                patient_account_status=row.account_status,
                doctor_name=row.doctor_name,
            )
            for row in result
        ]

    async def list_for_patient(self, patient_id: str) -> list[AppointmentListing]:
        """List a patient's own appointments, newest first."""
        return await self.list_appointments(patient_id=patient_id)
