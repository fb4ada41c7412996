"""Re-access workflow for restricted patients.

A patient submits a request; an administrator approves or rejects it once.
Approval restores the account (status ``active``, counter 0) in the same
transaction that marks the request approved. Rejection leaves the patient
restricted; they may submit a new request afterwards.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utc_now
from app.db.transaction import atomic
from app.models.patient import AccountStatus, Patient
from app.models.reaccess import ReaccessRequest, ReaccessRequestStatus
from app.services.audit import (
    AuditEventType,
    AuditRecord,
    AuditSink,
    LoggingAuditSink,
    emit_audit_event,
)
from app.services.directory import PatientDirectory
from app.services.errors import DuplicateRequestError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_RESPONSE = "Your request has been approved"
DEFAULT_REJECTION_RESPONSE = "Your request has been rejected"


@dataclass(frozen=True)
class ExistingRequestCheck:
    """Whether a patient already has a request awaiting review."""

    has_pending: bool
    request: ReaccessRequest | None = None


@dataclass(frozen=True)
class ReaccessListing:
    """Re-access request joined with the patient details shown to admins."""

    request: ReaccessRequest
    patient_name: str
    national_id: str
    patient_phone: str | None
    consecutive_missed_appointments: int


class ReaccessService:
    """Service for submitting and adjudicating re-access requests."""

    def __init__(self, session: AsyncSession, audit_sink: AuditSink | None = None):
        self.session = session
        self.audit_sink = audit_sink or LoggingAuditSink()
        self.patients = PatientDirectory(session)

    async def get_request(
        self,
        request_id: str,
        for_update: bool = False,
    ) -> ReaccessRequest | None:
        """Get a single request by ID, optionally locking its row."""
        query = (
            select(ReaccessRequest)
            .where(ReaccessRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_pending_request(self, patient_id: str) -> ReaccessRequest | None:
        """Get the patient's pending request, if any."""
        result = await self.session.execute(
            select(ReaccessRequest).where(
                ReaccessRequest.patient_id == patient_id,
                ReaccessRequest.status == ReaccessRequestStatus.PENDING,
            )
        )
        return result.scalars().first()

    async def check_existing(self, patient_id: str) -> ExistingRequestCheck:
        """Report whether the patient has a pending request.

        Lets clients hide the submit action; ``submit_request`` enforces the
        rule on its own.
        """
        request = await self.get_pending_request(patient_id)
        return ExistingRequestCheck(has_pending=request is not None, request=request)

    async def submit_request(
        self,
        patient_id: str,
        reason: str,
        contact_phone: str | None = None,
    ) -> ReaccessRequest:
        """Create a pending request for a patient.

        Raises:
            ValidationError: Empty reason
            NotFoundError: Unknown patient
            DuplicateRequestError: A pending request already exists
        """
        if not reason or not reason.strip():
            raise ValidationError("A reason is required")

        async with atomic(self.session):
            patient = await self.patients.require_patient(patient_id)

            if await self.get_pending_request(patient_id):
                raise DuplicateRequestError(
                    "You already have a pending request",
                    patient_id=patient_id,
                )

            request = ReaccessRequest(
                patient_id=patient_id,
                reason=reason.strip(),
                contact_phone=contact_phone or None,
                status=ReaccessRequestStatus.PENDING,
            )
            self.session.add(request)
            try:
                await self.session.flush()
            except IntegrityError as exc:
                # A concurrent submission won the race for the pending slot
                raise DuplicateRequestError(
                    "You already have a pending request",
                    patient_id=patient_id,
                ) from exc

        emit_audit_event(
            self.audit_sink,
            AuditRecord(
                event_type=AuditEventType.REACCESS_SUBMITTED,
                description=f"Re-access request submitted by patient: {patient.full_name}",
                actor_id=patient.user_id,
                actor_name=patient.full_name,
                actor_role="patient",
                target_type="patient",
                target_id=patient_id,
            ),
        )

        return request

    async def _load_pending(self, request_id: str) -> ReaccessRequest:
        request = await self.get_request(request_id, for_update=True)
        if not request:
            raise NotFoundError("Request not found", request_id=request_id)
        if not request.is_pending:
            raise ValidationError(
                "Request has already been processed",
                request_id=request_id,
                status=ReaccessRequestStatus(request.status).value,
            )
        return request

    async def approve_request(
        self,
        request_id: str,
        admin_id: str | None,
        response_text: str | None = None,
        admin_name: str | None = None,
    ) -> ReaccessRequest:
        """Approve a pending request and reactivate the patient's account.

        The request update and the account reset commit together.
        """
        async with atomic(self.session):
            request = await self._load_pending(request_id)

            request.status = ReaccessRequestStatus.APPROVED
            request.admin_response = response_text or DEFAULT_APPROVAL_RESPONSE
            request.processed_at = utc_now()
            request.processed_by = admin_id

            await self.patients.set_account_state(
                request.patient_id,
                status=AccountStatus.ACTIVE,
                missed_count=0,
            )
            patient = await self.patients.require_patient(request.patient_id)

        # Approval stands even if the audit sink is unavailable
        emit_audit_event(
            self.audit_sink,
            AuditRecord(
                event_type=AuditEventType.REACCESS_APPROVED,
                description=f"Re-access request approved for patient: {patient.full_name}",
                actor_id=admin_id,
                actor_name=admin_name or "Admin",
                actor_role="admin",
                target_type="patient",
                target_id=request.patient_id,
            ),
        )
        logger.info(f"Re-access request {request.id} approved; patient {request.patient_id} reactivated")

        return request

    async def reject_request(
        self,
        request_id: str,
        admin_id: str | None,
        response_text: str | None = None,
        admin_name: str | None = None,
    ) -> ReaccessRequest:
        """Reject a pending request. The patient stays restricted."""
        async with atomic(self.session):
            request = await self._load_pending(request_id)

            request.status = ReaccessRequestStatus.REJECTED
            request.admin_response = response_text or DEFAULT_REJECTION_RESPONSE
            request.processed_at = utc_now()
            request.processed_by = admin_id

            patient = await self.patients.require_patient(request.patient_id)

        emit_audit_event(
            self.audit_sink,
            AuditRecord(
                event_type=AuditEventType.REACCESS_REJECTED,
                description=f"Re-access request rejected for patient: {patient.full_name}",
                actor_id=admin_id,
                actor_name=admin_name or "Admin",
                actor_role="admin",
                target_type="patient",
                target_id=request.patient_id,
            ),
        )

        return request

    async def list_requests(self, pending_only: bool = True) -> list[ReaccessListing]:
        """List requests, newest first, with patient details for review."""
        query = select(
            ReaccessRequest,
            Patient.full_name,
            Patient.national_id,
            Patient.phone_number,
            Patient.consecutive_missed_appointments,
        ).join(Patient, ReaccessRequest.patient_id == Patient.id)

        if pending_only:
            query = query.where(ReaccessRequest.status == ReaccessRequestStatus.PENDING)

        query = query.order_by(ReaccessRequest.created_at.desc())

        result = await self.session.execute(query)
        return [
            ReaccessListing(
                request=row.ReaccessRequest,
                patient_name=row.full_name,
                national_id=row.national_id,
                patient_phone=row.phone_number,
                consecutive_missed_appointments=row.consecutive_missed_appointments,
            )
            for row in result
        ]
