"""Pydantic schemas for request/response validation."""

from app.schemas.appointment import (
    AccountStateRead,
    AppointmentCreate,
    AppointmentCreated,
    AppointmentListItem,
    AppointmentRead,
    AppointmentReschedule,
    AttendanceResult,
    AttendanceUpdate,
)
from app.schemas.reaccess import (
    ExistingRequestRead,
    ReaccessDecision,
    ReaccessListItem,
    ReaccessRequestRead,
    ReaccessSubmit,
)

__all__ = [
    "AppointmentCreate",
    "AppointmentCreated",
    "AppointmentRead",
    "AppointmentListItem",
    "AppointmentReschedule",
    "AttendanceUpdate",
    "AttendanceResult",
    "AccountStateRead",
    "ReaccessSubmit",
    "ReaccessDecision",
    "ReaccessRequestRead",
    "ReaccessListItem",
    "ExistingRequestRead",
]
