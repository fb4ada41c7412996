"""Re-access request schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.reaccess import ReaccessRequestStatus


class ReaccessSubmit(BaseModel):
    """Schema for a patient's re-access request."""

    reason: str = Field(..., max_length=2000)
    contact_phone: str | None = Field(None, max_length=20)


class ReaccessDecision(BaseModel):
    """Schema for approving or rejecting a request."""

    response_text: str | None = Field(None, max_length=2000)


class ReaccessRequestRead(BaseModel):
    """Schema for reading a re-access request."""

    id: str
    patient_id: str
    reason: str
    contact_phone: str | None
    status: ReaccessRequestStatus
    admin_response: str | None
    processed_at: datetime | None
    processed_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReaccessListItem(ReaccessRequestRead):
    """Request with the patient details shown to reviewers."""

    patient_name: str
    national_id: str
    patient_phone: str | None = None
    consecutive_missed_appointments: int


class ExistingRequestRead(BaseModel):
    """Whether a pending request already exists."""

    has_pending: bool
    request: ReaccessRequestRead | None = None
