"""Appointment model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin


class AppointmentStatus(str, Enum):
    """Status of an appointment."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"
    CANCELLED = "cancelled"


# Once reached, an appointment never changes status again
TERMINAL_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.MISSED,
    AppointmentStatus.CANCELLED,
)


class Appointment(Base, TimestampMixin):
    """Appointment between a patient and a doctor.

    Created as ``scheduled``. Attendance tracking moves it to ``completed`` or
    ``missed``; the scheduler moves it to ``cancelled``.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        # Two scheduled rows for one doctor at the exact same instant are
        # rejected by the database even if the application check is bypassed.
        Index(
            "uq_appointments_doctor_scheduled_slot",
            "doctor_id",
            "scheduled_at",
            unique=True,
            postgresql_where=text("status = 'scheduled'"),
            sqlite_where=text("status = 'scheduled'"),
        ),
    )

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    doctor_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    reason: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        String(20),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
        index=True,
    )

    # Relationships
    patient: Mapped["Patient"] = relationship("Patient", lazy="raise")
    doctor: Mapped["Doctor"] = relationship("Doctor", lazy="raise")

    @property
    def is_terminal(self) -> bool:
        """Return True if the appointment can no longer change status."""
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<Appointment {self.id[:8]}... {self.scheduled_at} status={self.status}>"


# Import for relationship resolution
from app.models.doctor import Doctor  # noqa: E402
from app.models.patient import Patient  # noqa: E402
