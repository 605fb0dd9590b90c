import logging
import os
import uuid
from typing import Any, AsyncGenerator, Dict, Iterable

# Settings are read once and cached; configure them before the app is imported
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("database__DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Application imports
from carecompanion.main import app
from carecompanion.core.database import Base, get_db
from carecompanion.core.security import JWTManager
from carecompanion.models.patient import CareRelationship, CareRoleEnum, Patient
from carecompanion.services.session_store import session_registry

# Configure logging for tests
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
API = "/api/v1"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False  # Set to True for SQL debugging
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the app with the database dependency overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_sessions():
    session_registry.clear()
    yield
    session_registry.clear()


@pytest.fixture
def count_rows(session_factory):
    """Count rows of a model in a separate session."""

    async def _count(model) -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count


# Identities

def auth_headers(user_id: uuid.UUID, roles: Iterable[str] = ("caregiver",)) -> Dict[str, str]:
    token = JWTManager.create_access_token(user_id, roles=roles)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def caregiver_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def caregiver_headers(caregiver_id) -> Dict[str, str]:
    return auth_headers(caregiver_id)


@pytest.fixture
def other_caregiver_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def other_headers(other_caregiver_id) -> Dict[str, str]:
    return auth_headers(other_caregiver_id)


@pytest.fixture
def therapist_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def therapist_headers(therapist_id) -> Dict[str, str]:
    return auth_headers(therapist_id, roles=("therapist",))


# Sample data

@pytest.fixture
def sample_patient_data() -> Dict[str, Any]:
    return {
        "display_name": "Margaret Thompson",
        "preferred_name": "Maggie",
        "date_of_birth": "1945-03-15",
        "dementia_stage": "middle",
        "location": "Home - Living Room",
        "affirmation": "You are safe and loved.",
        "emergency_contact": {
            "name": "Sarah Thompson",
            "relationship": "Daughter",
            "phone": "(555) 123-4567",
        },
    }


@pytest.fixture
def sample_adl_scores() -> Dict[str, int]:
    """Basic ADL total of 15"""
    return {
        "dressing": 3,
        "eating": 2,
        "bathing": 3,
        "toileting": 2,
        "transferring": 2,
        "continence": 3,
        "meal_preparation": 4,
        "medication_management": 4,
        "phone_use": 3,
        "finances": 5,
        "transportation": 5,
        "shopping": 4,
    }


@pytest.fixture
def make_patient(db_session):
    """Insert a patient linked to ``caregiver_id`` and commit."""

    async def _make(caregiver_id: uuid.UUID, display_name: str = "Margaret Thompson", **values: Any) -> Patient:
        patient = Patient(created_by=caregiver_id, display_name=display_name, **values)
        db_session.add(patient)
        await db_session.flush()
        db_session.add(CareRelationship(patient_id=patient.id, caregiver_id=caregiver_id, role=CareRoleEnum.PRIMARY))
        await db_session.commit()
        return patient

    return _make


@pytest.fixture
def make_headers():
    return auth_headers
