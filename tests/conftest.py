"""
Pytest configuration and fixtures for Opsdesk tests.

Provides:
- Async test database with SQLite (savepoints enabled)
- Test client for API testing
- Factory fixtures for creating test data
- A mock OpenAI client
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import Settings, get_settings
from app.core.database import get_db
from app.main import app
from app.models import Base
from app.models.agent_job import AgentJob, JobType
from app.models.contact import Contact
from app.models.proposal import Proposal
from app.models.rfp import Rfp
from app.models.task import Task, TaskStatus
from app.models.workspace import Workspace

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Wednesday morning; fixed so date windows are deterministic
NOW = datetime(2024, 3, 6, 9, 0, 0)
TODAY = NOW.date()


# Override settings for testing
class TestSettings(Settings):
    database_url: str = TEST_DATABASE_URL
    debug: bool = True
    openai_api_key: str = "test-key"
    cron_secret: str = ""
    environment: str = "test"
    base_url: str = "http://localhost:8000"
    scheduler_enabled: bool = False


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with database override."""
    from app.core.rate_limit import limiter

    async def override_get_db():
        yield db_session

    def override_get_settings():
        return TestSettings()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = override_get_settings

    # Reset rate limiter storage before each test
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def workspace_factory(db_session: AsyncSession):
    """Factory for creating test workspaces."""

    async def _create_workspace(name: str | None = None) -> Workspace:
        workspace = Workspace(name=name or f"Workspace {uuid.uuid4().hex[:6]}")
        db_session.add(workspace)
        await db_session.flush()
        return workspace

    return _create_workspace


@pytest_asyncio.fixture
async def workspace(workspace_factory) -> Workspace:
    return await workspace_factory("Acme Consulting")


@pytest_asyncio.fixture
async def task_factory(db_session: AsyncSession):
    """Factory for creating test tasks."""

    async def _create_task(
        workspace_id: str,
        title: str = "Write report",
        due_in_days: int | None = None,
        due_date: date | None = None,
        status: TaskStatus = TaskStatus.TODO,
        priority: str = "medium",
    ) -> Task:
        if due_date is None and due_in_days is not None:
            due_date = TODAY + timedelta(days=due_in_days)

        task = Task(
            workspace_id=workspace_id,
            title=title,
            status=status.value,
            priority=priority,
            due_date=due_date,
        )
        db_session.add(task)
        await db_session.flush()
        return task

    return _create_task


@pytest_asyncio.fixture
async def contact_factory(db_session: AsyncSession):
    """Factory for creating test contacts."""

    async def _create_contact(
        workspace_id: str,
        full_name: str | None = None,
        days_since_contact: int | None = None,
        relationship_health: str = "warm",
    ) -> Contact:
        last_contact = None
        if days_since_contact is not None:
            last_contact = TODAY - timedelta(days=days_since_contact)

        contact = Contact(
            workspace_id=workspace_id,
            full_name=full_name or f"Contact {uuid.uuid4().hex[:6]}",
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            last_contact_date=last_contact,
            relationship_health=relationship_health,
        )
        db_session.add(contact)
        await db_session.flush()
        return contact

    return _create_contact


@pytest_asyncio.fixture
async def rfp_factory(db_session: AsyncSession):
    """Factory for creating test RFPs."""

    async def _create_rfp(
        workspace_id: str,
        title: str = "City broadband study",
        due_in_days: int | None = 2,
        status: str = "reviewing",
        agency: str | None = "City of Springfield",
    ) -> Rfp:
        rfp = Rfp(
            workspace_id=workspace_id,
            title=title,
            agency=agency,
            status=status,
            response_deadline=TODAY + timedelta(days=due_in_days) if due_in_days is not None else None,
        )
        db_session.add(rfp)
        await db_session.flush()
        return rfp

    return _create_rfp


@pytest_asyncio.fixture
async def proposal_factory(db_session: AsyncSession):
    """Factory for creating test proposals."""

    async def _create_proposal(
        workspace_id: str,
        title: str = "Community health grant",
        due_in_days: int | None = 14,
        status: str = "in_progress",
    ) -> Proposal:
        proposal = Proposal(
            workspace_id=workspace_id,
            title=title,
            funder_name="Health Foundation",
            status=status,
            submission_deadline=TODAY + timedelta(days=due_in_days) if due_in_days is not None else None,
        )
        db_session.add(proposal)
        await db_session.flush()
        return proposal

    return _create_proposal


@pytest_asyncio.fixture
async def job_factory(db_session: AsyncSession):
    """Factory for creating test agent jobs."""

    async def _create_job(
        workspace_id: str,
        job_type: JobType | str = JobType.DEADLINE_MONITOR,
        schedule: str = "daily",
        next_run_at: datetime | None = None,
        is_active: bool = True,
        config: dict | None = None,
    ) -> AgentJob:
        job = AgentJob(
            workspace_id=workspace_id,
            job_type=job_type.value if isinstance(job_type, JobType) else job_type,
            schedule=schedule,
            next_run_at=next_run_at,
            is_active=is_active,
            config_json=config or {},
        )
        db_session.add(job)
        await db_session.flush()
        return job

    return _create_job


# ============================================================================
# LLM Fixtures
# ============================================================================


def make_llm_client(text: str, total_tokens: int = 150) -> MagicMock:
    """OpenAI client whose chat completion always returns `text`."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    response.usage = MagicMock(
        prompt_tokens=total_tokens - 50,
        completion_tokens=50,
        total_tokens=total_tokens,
    )

    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


@pytest.fixture
def llm_client_factory():
    return make_llm_client
