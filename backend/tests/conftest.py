"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- HTTP client for API testing
- SQLite test database sessions (aiosqlite, one file per test)
- A frozen clock for deterministic time classification
- Seeded clinicians and a recording event publisher
- Task builders for pure-function tests and service tests
"""

import os

# Keep the application engine off PostgreSQL during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carequeue.database import Base, get_db
from carequeue.main import app
from carequeue.models.clinician import Clinician
from carequeue.models.task import (
    Task,
    TaskCategory,
    TaskOwnerType,
    TaskPriority,
    TaskSource,
    TaskStatus,
    TaskType,
)
from carequeue.repositories.task import TaskRepository
from carequeue.schemas.task import TaskCreate
from carequeue.services.clinicians import SqlClinicianDirectory
from carequeue.services.events import RecordingEventPublisher
from carequeue.services.task_queue import TaskQueueService

NOW = datetime(2025, 3, 12, 15, 0, tzinfo=timezone.utc)

ALICE_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
BOB_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine with the full schema.

    A file (rather than :memory:) lets several sessions see each other's
    commits, which the concurrency tests rely on.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carequeue_test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def clinicians(db_session) -> list[Clinician]:
    """Seed the clinician directory."""
    seeded = [
        Clinician(id=ALICE_ID, name="Alice Moreno", email="alice@example.org"),
        Clinician(id=BOB_ID, name="Bob Okafor", email="bob@example.org"),
    ]
    db_session.add_all(seeded)
    await db_session.commit()
    return seeded


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def service(db_session, clinicians, publisher, clock) -> TaskQueueService:
    return TaskQueueService(
        TaskRepository(db_session),
        directory=SqlClinicianDirectory(db_session),
        publisher=publisher,
        clock=clock,
    )


# =============================================================================
# Task Builders
# =============================================================================


@pytest.fixture
def task_factory():
    """Build transient Task objects for pure-function tests."""

    def build(**overrides) -> Task:
        created_at = overrides.pop("created_at", NOW - timedelta(days=2))
        fields = {
            "id": uuid.uuid4(),
            "type": TaskType.CALL_BACK,
            "source": TaskSource.CLINICIAN,
            "owner_type": TaskOwnerType.CLINICIAN,
            "category": TaskCategory.CLINICAL_EXECUTION,
            "priority": TaskPriority.NORMAL,
            "status": TaskStatus.OPEN,
            "assigned_clinician_id": ALICE_ID,
            "created_by": None,
            "patient_id": None,
            "patient_name": "Jordan Test",
            "description": "Call patient back about imaging",
            "due_at": NOW + timedelta(days=1),
            "created_at": created_at,
            "updated_at": created_at,
            "status_changed_at": created_at,
            "completed_at": None,
            "cancelled_reason": None,
            "admin_acknowledged_at": None,
            "stall_threshold_days": None,
        }
        fields.update(overrides)
        return Task(**fields)

    return build


@pytest.fixture
def task_create():
    """Build valid TaskCreate payloads."""

    def build(**overrides) -> TaskCreate:
        fields = {
            "type": TaskType.CALL_BACK,
            "description": "Call patient back about imaging results",
            "assigned_clinician_id": ALICE_ID,
            "due_at": NOW + timedelta(days=1),
            "patient_name": "Jordan Test",
            "patient_id": "patient-001",
        }
        fields.update(overrides)
        return TaskCreate(**fields)

    return build


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client(session_maker, clinicians):
    """Async test client for the FastAPI app with the test database.

    Overrides the app's get_db dependency so API tests share the database
    used by the other fixtures.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)
