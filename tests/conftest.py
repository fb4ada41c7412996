"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app import models  # noqa: F401
from app.api.deps import get_audit_sink
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.patient import AccountStatus, Patient
from app.models.reaccess import ReaccessRequest, ReaccessRequestStatus
from app.services.audit import RecordingAuditSink
from app.services.operations import CoreOperations

# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Every scenario takes place on the same clinic day
CLINIC_DAY = datetime(2026, 2, 4, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    """Return an aware UTC datetime on the clinic day."""
    return CLINIC_DAY.replace(hour=hour, minute=minute)


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    """Audit sink that keeps emitted events for assertions."""
    return RecordingAuditSink()


@pytest.fixture
def ops(async_session: AsyncSession, audit_sink: RecordingAuditSink) -> CoreOperations:
    """Core operations bound to the test session."""
    return CoreOperations(async_session, audit_sink)


async def _add(session: AsyncSession, instance):
    session.add(instance)
    await session.commit()
    await session.refresh(instance)
    return instance


@pytest.fixture
async def doctor(async_session: AsyncSession) -> Doctor:
    """Create a doctor linked to a staff login account."""
    return await _add(
        async_session,
        Doctor(user_id=str(uuid4()), full_name="Dr. Alice Smith", phone_number="0100000001"),
    )


@pytest.fixture
async def other_doctor(async_session: AsyncSession) -> Doctor:
    """Create a second doctor with an independent schedule."""
    return await _add(
        async_session,
        Doctor(user_id=str(uuid4()), full_name="Dr. Bob Jones"),
    )


@pytest.fixture
async def patient(async_session: AsyncSession) -> Patient:
    """Create an active patient."""
    return await _add(
        async_session,
        Patient(
            user_id=str(uuid4()),
            national_id="29001011234567",
            full_name="John Doe",
            phone_number="0111111111",
        ),
    )


@pytest.fixture
async def other_patient(async_session: AsyncSession) -> Patient:
    """Create a second active patient."""
    return await _add(
        async_session,
        Patient(
            user_id=str(uuid4()),
            national_id="29505051234567",
            full_name="Jane Roe",
            phone_number="0122222222",
        ),
    )


@pytest.fixture
async def restricted_patient(async_session: AsyncSession) -> Patient:
    """Create a patient restricted after four consecutive missed appointments."""
    return await _add(
        async_session,
        Patient(
            user_id=str(uuid4()),
            national_id="28812121234567",
            full_name="Sam Restricted",
            phone_number="0133333333",
            account_status=AccountStatus.RESTRICTED,
            consecutive_missed_appointments=4,
        ),
    )


@pytest.fixture
def make_appointment(async_session: AsyncSession):
    """Insert an appointment directly, bypassing scheduling rules."""

    async def _make(
        doctor: Doctor,
        patient: Patient,
        scheduled_at: datetime,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    ) -> Appointment:
        return await _add(
            async_session,
            Appointment(
                doctor_id=doctor.id,
                patient_id=patient.id,
                scheduled_at=scheduled_at,
                status=status,
            ),
        )

    return _make


@pytest.fixture
async def pending_request(
    async_session: AsyncSession, restricted_patient: Patient
) -> ReaccessRequest:
    """Create a pending re-access request for the restricted patient."""
    return await _add(
        async_session,
        ReaccessRequest(
            patient_id=restricted_patient.id,
            reason="I was in hospital and could not attend",
            contact_phone="0133333333",
            status=ReaccessRequestStatus.PENDING,
        ),
    )


@pytest.fixture
async def client(
    async_session: AsyncSession,
    audit_sink: RecordingAuditSink,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an HTTP client for the app with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


def create_test_token(user_id: str, role: str, name: str | None = None) -> str:
    """Create a test JWT token for a login account."""
    claims = {"role": role}
    if name:
        claims["name"] = name
    return create_access_token(subject=user_id, additional_claims=claims)


def bearer(user_id: str, role: str, name: str | None = None) -> dict[str, str]:
    """Build authorization headers for a login account."""
    return {"Authorization": f"Bearer {create_test_token(user_id, role, name)}"}


@pytest.fixture
def admin_id() -> str:
    """Login account ID of the reviewing administrator."""
    return str(uuid4())


@pytest.fixture
def admin_headers(admin_id: str) -> dict[str, str]:
    """Create authorization headers for an administrator."""
    return bearer(admin_id, "admin", "Admin User")


@pytest.fixture
def nurse_headers() -> dict[str, str]:
    """Create authorization headers for a nurse."""
    return bearer(str(uuid4()), "nurse", "Nurse Joy")


@pytest.fixture
def doctor_headers(doctor: Doctor) -> dict[str, str]:
    """Create authorization headers for the doctor."""
    return bearer(doctor.user_id, "doctor", doctor.full_name)


@pytest.fixture
def patient_headers(patient: Patient) -> dict[str, str]:
    """Create authorization headers for the active patient."""
    return bearer(patient.user_id, "patient", patient.full_name)


@pytest.fixture
def restricted_patient_headers(restricted_patient: Patient) -> dict[str, str]:
    """Create authorization headers for the restricted patient."""
    return bearer(restricted_patient.user_id, "patient", restricted_patient.full_name)
