"""Re-access request endpoints.

Restricted patients submit a request; administrators approve or reject it.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import (
    Actor,
    CurrentActor,
    CurrentPatient,
    DbSession,
    Operations,
    require_permissions,
)
from app.api.v1.responses import unwrap
from app.schemas.reaccess import (
    ExistingRequestRead,
    ReaccessDecision,
    ReaccessListItem,
    ReaccessRequestRead,
    ReaccessSubmit,
)
from app.services.directory import PatientDirectory
from app.services.rbac import Permission, RBACService, UserRole

router = APIRouter()


# ============================================================================
# Patient Endpoints
# ============================================================================


@router.post(
    "",
    response_model=ReaccessRequestRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permissions(Permission.REACCESS_SUBMIT))],
)
async def submit_request(
    patient: CurrentPatient,
    ops: Operations,
    request: ReaccessSubmit,
) -> ReaccessRequestRead:
    """Submit a re-access request for the calling patient."""
    reaccess_request = unwrap(
        await ops.reaccess_submit(patient.id, request.reason, request.contact_phone)
    )
    return ReaccessRequestRead.model_validate(reaccess_request)


@router.get(
    "/check-existing",
    response_model=ExistingRequestRead,
)
async def check_existing_request(
    actor: CurrentActor,
    session: DbSession,
    ops: Operations,
    patient_id: UUID | None = Query(None),
) -> ExistingRequestRead:
    """Report whether a pending request exists.

    Patients check their own account; staff pass ``patient_id``.
    """
    if actor.role == UserRole.PATIENT:
        patient = await PatientDirectory(session).get_by_user_id(actor.id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Patient not found",
            )
        target_patient_id = patient.id
    else:
        if not RBACService.has_permission(actor.role, Permission.REACCESS_READ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        if patient_id is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="patient_id is required",
            )
        target_patient_id = str(patient_id)

    check = unwrap(await ops.reaccess_check_existing(target_patient_id))
    return ExistingRequestRead(
        has_pending=check.has_pending,
        request=ReaccessRequestRead.model_validate(check.request) if check.request else None,
    )


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[ReaccessListItem],
    dependencies=[Depends(require_permissions(Permission.REACCESS_REVIEW))],
)
async def list_requests(
    ops: Operations,
    pending_only: bool = Query(True),
) -> list[ReaccessListItem]:
    """List re-access requests, newest first."""
    listings = unwrap(await ops.reaccess_list(pending_only=pending_only))
    return [
        ReaccessListItem(
            **ReaccessRequestRead.model_validate(listing.request).model_dump(),
            patient_name=listing.patient_name,
            national_id=listing.national_id,
            patient_phone=listing.patient_phone,
            consecutive_missed_appointments=listing.consecutive_missed_appointments,
        )
        for listing in listings
    ]


@router.post(
    "/{request_id}/approve",
    response_model=ReaccessRequestRead,
)
async def approve_request(
    request_id: UUID,
    ops: Operations,
    actor: Annotated[Actor, Depends(require_permissions(Permission.REACCESS_REVIEW))],
    decision: ReaccessDecision | None = None,
) -> ReaccessRequestRead:
    """Approve a pending request and reactivate the patient's account."""
    reaccess_request = unwrap(
        await ops.reaccess_approve(
            str(request_id),
            admin_id=actor.id,
            response_text=decision.response_text if decision else None,
            admin_name=actor.name,
        )
    )
    return ReaccessRequestRead.model_validate(reaccess_request)


@router.post(
    "/{request_id}/reject",
    response_model=ReaccessRequestRead,
)
async def reject_request(
    request_id: UUID,
    ops: Operations,
    actor: Annotated[Actor, Depends(require_permissions(Permission.REACCESS_REVIEW))],
    decision: ReaccessDecision | None = None,
) -> ReaccessRequestRead:
    """Reject a pending request. The patient stays restricted."""
    reaccess_request = unwrap(
        await ops.reaccess_reject(
            str(request_id),
            admin_id=actor.id,
            response_text=decision.response_text if decision else None,
            admin_name=actor.name,
        )
    )
    return ReaccessRequestRead.model_validate(reaccess_request)
