"""Core surface for scheduling, attendance and re-access.

Every operation returns ``Success`` or ``Failure`` instead of raising for
expected failures, so presentation layers can switch on ``Failure.kind``.
Unexpected exceptions still propagate.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.transaction import read_only
from app.models.appointment import Appointment, AppointmentStatus
from app.models.reaccess import ReaccessRequest
from app.services.attendance import AttendanceOutcome, AttendanceService
from app.services.audit import AuditSink, LoggingAuditSink
from app.services.directory import AccountState
from app.services.errors import CoreError, ValidationError
from app.services.reaccess import ExistingRequestCheck, ReaccessListing, ReaccessService
from app.services.results import Failure, Result, Success
from app.services.scheduling import AppointmentListing, SchedulingService
from app.utils.time import parse_datetime

logger = logging.getLogger(__name__)


def coerce_datetime(value: datetime | str | None, field_name: str = "scheduled_at") -> datetime:
    """Accept a datetime or an ISO 8601 string with an explicit offset.

    Raises:
        ValidationError: Missing or unparseable value
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", field=field_name)
    if isinstance(value, datetime):
        return value
    try:
        return parse_datetime(value)
    except ValueError:
        raise ValidationError(
            f"Invalid {field_name}: {value}",
            field=field_name,
            value=value,
        ) from None


class CoreOperations:
    """Typed-result facade over the scheduling, attendance and re-access services.

    All services share one session, so each operation runs in a single
    transaction on it.
    """

    def __init__(self, session: AsyncSession, audit_sink: AuditSink | None = None):
        self.session = session
        self.audit_sink = audit_sink or LoggingAuditSink()
        self.scheduling = SchedulingService(session, self.audit_sink)
        self.attendance = AttendanceService(session, self.audit_sink)
        self.reaccess = ReaccessService(session, self.audit_sink)

    @staticmethod
    def _fail(operation: str, error: CoreError) -> Failure:
        logger.info(f"{operation} failed: {error.kind.value}: {error.message}")
        return Failure.from_error(error)

    # Scheduler

    async def schedule_create(
        self,
        doctor_user_id: str,
        patient_id: str,
        scheduled_at: datetime | str,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> Result[str]:
        """Book an appointment; succeeds with the new appointment ID."""
        try:
            when = coerce_datetime(scheduled_at)
            appointment = await self.scheduling.create_appointment(
                doctor_user_id=doctor_user_id,
                patient_id=patient_id,
                scheduled_at=when,
                reason=reason,
                actor_id=actor_id,
            )
        except CoreError as exc:
            return self._fail("schedule_create", exc)
        return Success(appointment.id)

    async def schedule_reschedule(
        self,
        appointment_id: str,
        new_scheduled_at: datetime | str,
        reason: str | None = None,
    ) -> Result[Appointment]:
        try:
            when = coerce_datetime(new_scheduled_at)
            appointment = await self.scheduling.reschedule_appointment(
                appointment_id, when, reason
            )
        except CoreError as exc:
            return self._fail("schedule_reschedule", exc)
        return Success(appointment)

    async def schedule_cancel(self, appointment_id: str) -> Result[Appointment]:
        try:
            appointment = await self.scheduling.cancel_appointment(appointment_id)
        except CoreError as exc:
            return self._fail("schedule_cancel", exc)
        return Success(appointment)

    async def schedule_delete(self, appointment_id: str) -> Result[None]:
        try:
            await self.scheduling.delete_appointment(appointment_id)
        except CoreError as exc:
            return self._fail("schedule_delete", exc)
        return Success(None)

    async def schedule_list(
        self,
        doctor_user_id: str | None = None,
        patient_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> Result[list[AppointmentListing]]:
        try:
            async with read_only(self.session):
                listings = await self.scheduling.list_appointments(
                    doctor_user_id=doctor_user_id,
                    patient_id=patient_id,
                    status=status,
                )
        except CoreError as exc:
            return self._fail("schedule_list", exc)
        return Success(listings)

    async def schedule_list_for_patient(
        self, patient_id: str
    ) -> Result[list[AppointmentListing]]:
        try:
            async with read_only(self.session):
                listings = await self.scheduling.list_for_patient(patient_id)
        except CoreError as exc:
            return self._fail("schedule_list_for_patient", exc)
        return Success(listings)

    # Attendance

    async def attendance_set_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus | str,
        actor_id: str | None = None,
    ) -> Result[AttendanceOutcome]:
        try:
            outcome = await self.attendance.set_status(appointment_id, new_status, actor_id)
        except CoreError as exc:
            return self._fail("attendance_set_status", exc)
        return Success(outcome)

    async def attendance_account_state(self, patient_id: str) -> Result[AccountState]:
        try:
            async with read_only(self.session):
                state = await self.attendance.account_state(patient_id)
        except CoreError as exc:
            return self._fail("attendance_account_state", exc)
        return Success(state)

    # Re-access

    async def reaccess_submit(
        self,
        patient_id: str,
        reason: str,
        contact_phone: str | None = None,
    ) -> Result[ReaccessRequest]:
        try:
            request = await self.reaccess.submit_request(patient_id, reason, contact_phone)
        except CoreError as exc:
            return self._fail("reaccess_submit", exc)
        return Success(request)

    async def reaccess_approve(
        self,
        request_id: str,
        admin_id: str | None,
        response_text: str | None = None,
        admin_name: str | None = None,
    ) -> Result[ReaccessRequest]:
        try:
            request = await self.reaccess.approve_request(
                request_id, admin_id, response_text, admin_name
            )
        except CoreError as exc:
            return self._fail("reaccess_approve", exc)
        return Success(request)

    async def reaccess_reject(
        self,
        request_id: str,
        admin_id: str | None,
        response_text: str | None = None,
        admin_name: str | None = None,
    ) -> Result[ReaccessRequest]:
        try:
            request = await self.reaccess.reject_request(
                request_id, admin_id, response_text, admin_name
            )
        except CoreError as exc:
            return self._fail("reaccess_reject", exc)
        return Success(request)

    async def reaccess_check_existing(self, patient_id: str) -> Result[ExistingRequestCheck]:
        try:
            async with read_only(self.session):
                check = await self.reaccess.check_existing(patient_id)
        except CoreError as exc:
            return self._fail("reaccess_check_existing", exc)
        return Success(check)

    async def reaccess_list(self, pending_only: bool = True) -> Result[list[ReaccessListing]]:
        try:
            async with read_only(self.session):
                listings = await self.reaccess.list_requests(pending_only=pending_only)
        except CoreError as exc:
            return self._fail("reaccess_list", exc)
        return Success(listings)
