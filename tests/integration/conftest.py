"""
Integration test fixtures for LeakWatch.

Runs the FastAPI app through httpx.ASGITransport against a throwaway SQLite
database (aiosqlite) created per test from the ORM metadata. Redis is left
unconfigured and the notification dispatcher is replaced by a recorder.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from leakwatch.db.models import (
    Base,
    IssueType,
    Report,
    ReportStatus,
    Severity,
    User,
    UserRole,
)
from leakwatch.db.session import make_session_factory
from leakwatch.services.auth import create_access_token, hash_password
from leakwatch.services.lifecycle import StatusChangeEvent
from leakwatch.services.notifications import NotificationDispatcher, NotificationError

TEST_PASSWORD = "correct-horse-battery"

# Shared by every seeded user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

SEED_TIME = datetime(2026, 2, 1, 8, 0, 0)


class RecordingDispatcher(NotificationDispatcher):
    """Records every event it is asked to deliver; can be told to fail."""

    def __init__(self) -> None:
        self.events: list[StatusChangeEvent] = []
        self.fail = False

    @property
    def channel(self) -> str:
        return "recording"

    async def send(self, event: StatusChangeEvent) -> None:
        self.events.append(event)
        if self.fail:
            raise NotificationError("relay unavailable", status_code=503)


# ── Database ─────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leakwatch_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and inspecting the database from tests."""
    session = make_session_factory(test_engine)()
    yield session
    await session.close()


# ── App client ───────────────────────────────────────────────────────────────


@pytest.fixture
def notifier() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def app_client(
    test_engine: AsyncEngine,
    notifier: RecordingDispatcher,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx AsyncClient with ASGITransport, patched to use the test database."""
    import leakwatch.db.session as db_session_mod
    from leakwatch.api.deps import get_notifier
    from leakwatch.api.main import app

    original_engine = db_session_mod._engine
    original_factory = db_session_mod._async_session_factory

    db_session_mod._engine = test_engine
    db_session_mod._async_session_factory = make_session_factory(test_engine)

    app.state.redis = None
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    db_session_mod._engine = original_engine
    db_session_mod._async_session_factory = original_factory


# ── Users ────────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def users(db_session: AsyncSession) -> dict[str, User]:
    """One user per role, a second reporter and a banned technician."""
    specs = {
        "reporter": ("ada@leakwatch.example.com", "Ada Reporter", UserRole.REPORTER, False),
        "other_reporter": ("bola@leakwatch.example.com", "Bola Neighbour", UserRole.REPORTER, False),
        "technician": ("tunde@leakwatch.example.com", "Tunde Technician", UserRole.TECHNICIAN, False),
        "administrator": ("amaka@leakwatch.example.com", "Amaka Admin", UserRole.ADMINISTRATOR, False),
        "banned_technician": ("kemi@leakwatch.example.com", "Kemi Banned", UserRole.TECHNICIAN, True),
    }

    seeded: dict[str, User] = {}
    for offset, (key, (email, name, role, banned)) in enumerate(specs.items()):
        user = User(
            id=uuid4(),
            email=email,
            password_hash=TEST_PASSWORD_HASH,
            display_name=name,
            role=role,
            is_banned=banned,
            created_at=SEED_TIME + timedelta(seconds=offset),
            updated_at=SEED_TIME + timedelta(seconds=offset),
        )
        db_session.add(user)
        seeded[key] = user
    await db_session.commit()
    return seeded


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build Authorization headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers


# ── Reports ──────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def seed_report(db_session: AsyncSession) -> Callable[..., Awaitable[Report]]:
    """Factory fixture to seed one report with configurable attributes."""
    counter = {"n": 0}

    async def _seed(
        owner: User,
        *,
        description: str = "Burst pipe flooding the road",
        issue_type: IssueType = IssueType.LEAKAGE,
        severity: Severity = Severity.MEDIUM,
        status: ReportStatus = ReportStatus.PENDING,
        location_address: str | None = "12 Marina Road",
        latitude: float | None = None,
        longitude: float | None = None,
        photos: list[str] | None = None,
    ) -> Report:
        counter["n"] += 1
        created = SEED_TIME + timedelta(hours=counter["n"])
        report = Report(
            id=uuid4(),
            user_id=owner.id,
            issue_type=issue_type,
            severity=severity,
            description=description,
            latitude=latitude,
            longitude=longitude,
            location_address=location_address,
            photos=list(photos or []),
            status=status,
            created_at=created,
            updated_at=created,
        )
        db_session.add(report)
        await db_session.commit()
        return report

    return _seed


@pytest.fixture
def test_password() -> str:
    """Plaintext password of every seeded user."""
    return TEST_PASSWORD
