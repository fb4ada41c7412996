"""Failure kinds raised by the scheduling, attendance and re-access services.

Services raise these exceptions; ``app.services.operations`` turns them into
``Failure`` values so callers never see them as crashes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from app.utils.time import format_display


class ErrorKind(str, Enum):
    """Kind of failure reported to callers."""

    NOT_FOUND = "not_found"
    PATIENT_RESTRICTED = "patient_restricted"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    DUPLICATE_REQUEST = "duplicate_request"
    VALIDATION_ERROR = "validation_error"
    PERSISTENCE_FAILURE = "persistence_failure"


class CoreError(Exception):
    """Base class for expected, typed failures."""

    kind: ErrorKind

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(CoreError):
    """Referenced appointment, request, doctor or patient does not exist."""

    kind = ErrorKind.NOT_FOUND


class PatientRestrictedError(CoreError):
    """Scheduling blocked because the patient's account is restricted."""

    kind = ErrorKind.PATIENT_RESTRICTED


class SchedulingConflictError(CoreError):
    """Requested time collides with another scheduled appointment."""

    kind = ErrorKind.SCHEDULING_CONFLICT

    def __init__(
        self,
        conflict_time: datetime | None = None,
        patient_name: str | None = None,
        message: str | None = None,
    ) -> None:
        if conflict_time is not None and conflict_time.tzinfo is None:
            conflict_time = conflict_time.replace(tzinfo=timezone.utc)
        if message is None:
            if conflict_time is not None:
                message = (
                    "Time conflict: you already have an appointment with "
                    f"{patient_name or 'another patient'} at "
                    f"{format_display(conflict_time)}"
                )
            else:
                message = "Time conflict: the requested slot is already taken"
        super().__init__(
            message,
            conflict_time=conflict_time.isoformat() if conflict_time else None,
            patient_name=patient_name,
        )
        self.conflict_time = conflict_time
        self.patient_name = patient_name


class DuplicateRequestError(CoreError):
    """A pending re-access request already exists for the patient."""

    kind = ErrorKind.DUPLICATE_REQUEST


class ValidationError(CoreError):
    """Missing or malformed input, or a transition the lifecycle forbids."""

    kind = ErrorKind.VALIDATION_ERROR


class PersistenceFailure(CoreError):
    """Storage could not be read, or the unit of work could not be committed."""

    kind = ErrorKind.PERSISTENCE_FAILURE
