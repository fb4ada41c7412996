"""Patient and doctor lookups used by the scheduling core.

Both directories work on the caller's session, so their reads and writes join
whatever transaction the caller has open.
"""

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.doctor import Doctor
from app.models.patient import AccountStatus, Patient
from app.services.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class AccountState:
    """Snapshot of a patient's account facet."""

    status: AccountStatus
    missed_count: int

    @property
    def is_restricted(self) -> bool:
        return self.status == AccountStatus.RESTRICTED


class PatientDirectory:
    """Patient lookups and account-state writes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_patient(self, patient_id: str) -> Patient | None:
        """Get a patient by ID."""
        result = await self.session.execute(
            select(Patient)
            .where(Patient.id == patient_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Patient | None:
        """Get the patient linked to a login account."""
        result = await self.session.execute(
            select(Patient).where(Patient.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def require_patient(self, patient_id: str) -> Patient:
        """Get a patient by ID or raise NotFoundError."""
        patient = await self.get_patient(patient_id)
        if not patient:
            raise NotFoundError("Patient not found", patient_id=patient_id)
        return patient

    async def get_account_state(
        self,
        patient_id: str,
        for_update: bool = False,
    ) -> AccountState:
        """Read the patient's current status and missed-appointment counter.

        Reads columns directly so the answer reflects the database, including
        writes made earlier in the current transaction. With ``for_update`` the
        patient row stays locked until the transaction ends, so attendance
        updates for the same patient wait for the caller to commit.
        """
        query = select(
            Patient.account_status,
            Patient.consecutive_missed_appointments,
        ).where(Patient.id == patient_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Patient not found", patient_id=patient_id)
        return AccountState(
            status=AccountStatus(row.account_status),
            missed_count=row.consecutive_missed_appointments,
        )

    async def set_account_state(
        self,
        patient_id: str,
        status: AccountStatus,
        missed_count: int,
    ) -> None:
        """Overwrite the account facet."""
        if missed_count < 0:
            raise ValidationError("missed_count cannot be negative", missed_count=missed_count)
        await self.session.execute(
            update(Patient)
            .where(Patient.id == patient_id)
            .values(
                account_status=status,
                consecutive_missed_appointments=missed_count,
            )
        )

    async def increment_missed(self, patient_id: str) -> int:
        """Add one missed appointment and return the new counter value."""
        await self.session.execute(
            update(Patient)
            .where(Patient.id == patient_id)
            .values(
                consecutive_missed_appointments=Patient.consecutive_missed_appointments + 1
            )
        )
        state = await self.get_account_state(patient_id)
        return state.missed_count

    async def reset_missed(self, patient_id: str) -> None:
        """Set the missed-appointment counter back to zero."""
        await self.session.execute(
            update(Patient)
            .where(Patient.id == patient_id)
            .values(consecutive_missed_appointments=0)
        )

    async def restrict(self, patient_id: str) -> None:
        """Mark the account restricted. No-op if it already is."""
        await self.session.execute(
            update(Patient)
            .where(
                Patient.id == patient_id,
                Patient.account_status != AccountStatus.RESTRICTED,
            )
            .values(account_status=AccountStatus.RESTRICTED)
        )


class DoctorDirectory:
    """Resolves staff login accounts to doctor scheduling identities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def resolve_doctor(self, staff_account_id: str) -> str:
        """Return the doctor ID for a staff login account.

        Raises:
            NotFoundError: If the account has no doctor record
        """
        result = await self.session.execute(
            select(Doctor.id).where(Doctor.user_id == staff_account_id)
        )
        doctor_id = result.scalar_one_or_none()
        if doctor_id is None:
            raise NotFoundError("Doctor not found", staff_account_id=staff_account_id)
        return doctor_id

    async def lock_schedule(self, doctor_id: str) -> None:
        """Serialize schedule changes for one doctor until the transaction ends.

        Takes a row lock on the doctor record; concurrent create/reschedule
        calls for the same doctor wait here, so their conflict checks see each
        other's inserts.
        """
        result = await self.session.execute(
            select(Doctor.id).where(Doctor.id == doctor_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Doctor not found", doctor_id=doctor_id)
