"""Re-access request model for restricted patients appealing their restriction."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class ReaccessRequestStatus(str, Enum):
    """Status of a re-access request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReaccessRequest(Base, TimestampMixin):
    """Appeal submitted by a patient to lift an account restriction.

    ``created_at`` is the submission time. A request is adjudicated exactly
    once; a later restriction needs a new request.
    """

    __tablename__ = "reaccess_requests"
    __table_args__ = (
        # At most one pending request per patient
        Index(
            "uq_reaccess_requests_pending_patient",
            "patient_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    contact_phone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    status: Mapped[ReaccessRequestStatus] = mapped_column(
        String(20),
        default=ReaccessRequestStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Admin review
    admin_response: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    processed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
    )

    @property
    def is_pending(self) -> bool:
        """Return True while the request awaits review."""
        return self.status == ReaccessRequestStatus.PENDING

    def __repr__(self) -> str:
        return f"<ReaccessRequest {self.id[:8]}... status={self.status}>"
