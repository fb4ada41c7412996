"""Doctor scheduling identity, linked to a staff login account."""

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Doctor(Base, TimestampMixin):
    """Doctor that appointments are booked against.

    Staff authenticate with their login account (``user_id``); appointments
    reference the doctor record, so callers resolve one to the other first.
    """

    __tablename__ = "doctors"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        unique=True,
        nullable=False,
        index=True,
    )
    full_name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    phone_number: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Doctor {self.full_name}>"
