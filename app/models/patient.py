"""Patient record and its account facet.

Registration and profile editing live in the patient records service. This
service reads identity fields and owns only the account facet:
``account_status`` and ``consecutive_missed_appointments``.
"""

from enum import Enum

from sqlalchemy import Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class AccountStatus(str, Enum):
    """Patient account status."""

    ACTIVE = "active"
    RESTRICTED = "restricted"


class Patient(Base, TimestampMixin):
    """Patient registered with the clinic."""

    __tablename__ = "patients"

    # Login account that authenticates as this patient
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        unique=True,
        nullable=False,
        index=True,
    )
    national_id: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    phone_number: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # -------------------------------------------------------------------------
    # Account facet (written only by attendance tracking and re-access review)
    # -------------------------------------------------------------------------
    account_status: Mapped[AccountStatus] = mapped_column(
        String(20),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )
    consecutive_missed_appointments: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    @property
    def is_restricted(self) -> bool:
        """Return True if the account is barred from new bookings."""
        return self.account_status == AccountStatus.RESTRICTED

    def __repr__(self) -> str:
        return f"<Patient {self.full_name} status={self.account_status}>"
