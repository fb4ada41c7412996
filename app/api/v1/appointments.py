"""Appointment API endpoints: booking, rescheduling, cancellation and attendance."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import Actor, CurrentPatient, Operations, require_permissions
from app.api.v1.responses import unwrap
from app.models.appointment import AppointmentStatus
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentCreated,
    AppointmentListItem,
    AppointmentRead,
    AppointmentReschedule,
    AttendanceResult,
    AttendanceUpdate,
)
from app.services.rbac import Permission, UserRole
from app.services.scheduling import AppointmentListing

router = APIRouter()


def _listing_item(listing: AppointmentListing) -> AppointmentListItem:
    base = AppointmentRead.model_validate(listing.appointment)
    return AppointmentListItem(
        **base.model_dump(),
        patient_name=listing.patient_name,
        patient_phone=listing.patient_phone,
        patient_account_status=listing.patient_account_status,
        doctor_name=listing.doctor_name,
    )


# ============================================================================
# Staff Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[AppointmentListItem],
)
async def list_appointments(
    ops: Operations,
    actor: Annotated[Actor, Depends(require_permissions(Permission.APPOINTMENTS_READ))],
    doctor_user_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
) -> list[AppointmentListItem]:
    """List appointments, newest first.

    Doctors only see their own schedule.
    """
    doctor_filter = str(doctor_user_id) if doctor_user_id else None
    if actor.role == UserRole.DOCTOR:
        doctor_filter = actor.id

    listings = unwrap(
        await ops.schedule_list(
            doctor_user_id=doctor_filter,
            patient_id=str(patient_id) if patient_id else None,
            status=status_filter,
        )
    )
    return [_listing_item(listing) for listing in listings]


@router.post(
    "",
    response_model=AppointmentCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_appointment(
    ops: Operations,
    request: AppointmentCreate,
    actor: Annotated[Actor, Depends(require_permissions(Permission.APPOINTMENTS_WRITE))],
) -> AppointmentCreated:
    """Book an appointment for a doctor."""
    if actor.role == UserRole.DOCTOR:
        doctor_user_id = actor.id
    elif request.doctor_user_id:
        doctor_user_id = str(request.doctor_user_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="doctor_user_id is required",
        )

    appointment_id = unwrap(
        await ops.schedule_create(
            doctor_user_id=doctor_user_id,
            patient_id=str(request.patient_id),
            scheduled_at=request.scheduled_at,
            reason=request.reason,
            actor_id=actor.id,
        )
    )
    return AppointmentCreated(id=appointment_id)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentRead,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_WRITE))],
)
async def reschedule_appointment(
    appointment_id: UUID,
    ops: Operations,
    request: AppointmentReschedule,
) -> AppointmentRead:
    """Move an appointment to a new time."""
    appointment = unwrap(
        await ops.schedule_reschedule(
            str(appointment_id),
            request.scheduled_at,
            request.reason,
        )
    )
    return AppointmentRead.model_validate(appointment)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentRead,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_CANCEL))],
)
async def cancel_appointment(
    appointment_id: UUID,
    ops: Operations,
) -> AppointmentRead:
    """Cancel an appointment."""
    appointment = unwrap(await ops.schedule_cancel(str(appointment_id)))
    return AppointmentRead.model_validate(appointment)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_DELETE))],
)
async def delete_appointment(
    appointment_id: UUID,
    ops: Operations,
) -> None:
    """Hard-delete an appointment (admin only)."""
    unwrap(await ops.schedule_delete(str(appointment_id)))


@router.post(
    "/{appointment_id}/status",
    response_model=AttendanceResult,
)
async def record_attendance(
    appointment_id: UUID,
    ops: Operations,
    request: AttendanceUpdate,
    actor: Annotated[Actor, Depends(require_permissions(Permission.ATTENDANCE_WRITE))],
) -> AttendanceResult:
    """Mark an appointment completed or missed."""
    outcome = unwrap(
        await ops.attendance_set_status(str(appointment_id), request.status, actor.id)
    )
    return AttendanceResult(
        appointment=AppointmentRead.model_validate(outcome.appointment),
        missed_count=outcome.missed_count,
        patient_restricted=outcome.patient_restricted,
    )


# ============================================================================
# Patient Endpoints
# ============================================================================


@router.get(
    "/mine",
    response_model=list[AppointmentListItem],
    dependencies=[Depends(require_permissions(Permission.APPOINTMENTS_READ_OWN))],
)
async def list_my_appointments(
    patient: CurrentPatient,
    ops: Operations,
) -> list[AppointmentListItem]:
    """List the calling patient's appointments."""
    listings = unwrap(await ops.schedule_list_for_patient(patient.id))
    return [_listing_item(listing) for listing in listings]
