"""Appointment and attendance schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.appointment import AppointmentStatus
from app.models.patient import AccountStatus


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment.

    ``doctor_user_id`` defaults to the calling doctor; admins must supply it.
    """

    patient_id: UUID
    scheduled_at: datetime
    reason: str | None = Field(None, max_length=2000)
    doctor_user_id: UUID | None = None


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new time."""

    scheduled_at: datetime
    reason: str | None = Field(None, max_length=2000)


class AttendanceUpdate(BaseModel):
    """Schema for recording attendance."""

    status: AppointmentStatus


class AppointmentCreated(BaseModel):
    """Identifier of a newly booked appointment."""

    id: str


class AppointmentRead(BaseModel):
    """Schema for reading appointment data."""

    id: str
    patient_id: str
    doctor_id: str
    scheduled_at: datetime
    reason: str
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class AppointmentListItem(AppointmentRead):
    """Appointment with the names shown on schedules."""

    patient_name: str | None = None
    patient_phone: str | None = None
    patient_account_status: AccountStatus | None = None
    doctor_name: str | None = None


class AttendanceResult(BaseModel):
    """Outcome of recording attendance."""

    appointment: AppointmentRead
    missed_count: int
    patient_restricted: bool


class AccountStateRead(BaseModel):
    """A patient's account status and consecutive-missed counter."""

    status: AccountStatus
    missed_count: int
    is_restricted: bool
