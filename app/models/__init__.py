"""Database models for the clinic attendance service."""

from app.models.appointment import TERMINAL_STATUSES, Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.patient import AccountStatus, Patient
from app.models.reaccess import ReaccessRequest, ReaccessRequestStatus

__all__ = [
    # Directory records
    "Patient",
    "AccountStatus",
    "Doctor",
    # Scheduling
    "Appointment",
    "AppointmentStatus",
    "TERMINAL_STATUSES",
    # Re-access
    "ReaccessRequest",
    "ReaccessRequestStatus",
]
