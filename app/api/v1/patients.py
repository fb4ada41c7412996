"""Patient account-state endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import Operations, require_permissions
from app.api.v1.responses import unwrap
from app.schemas.appointment import AccountStateRead
from app.services.rbac import Permission

router = APIRouter()


@router.get(
    "/{patient_id}/account-state",
    response_model=AccountStateRead,
    dependencies=[Depends(require_permissions(Permission.PATIENTS_READ))],
)
async def get_account_state(
    patient_id: UUID,
    ops: Operations,
) -> AccountStateRead:
    """Get a patient's account status and consecutive missed appointments."""
    state = unwrap(await ops.attendance_account_state(str(patient_id)))
    return AccountStateRead(
        status=state.status,
        missed_count=state.missed_count,
        is_restricted=state.is_restricted,
    )
