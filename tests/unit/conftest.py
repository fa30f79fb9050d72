"""
Pytest configuration and shared fixtures for unit tests.

Users and reports are built in memory, without a database session.
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from leakwatch.db.models import (
    IssueType,
    Report,
    ReportStatus,
    Severity,
    User,
    UserRole,
)

BASE_TIME = datetime(2026, 3, 1, 9, 0, 0)


def make_user(
    role: UserRole = UserRole.REPORTER,
    *,
    banned: bool = False,
    email: str | None = None,
    display_name: str | None = None,
) -> User:
    """Build an unsaved user."""
    return User(
        id=uuid4(),
        email=email or f"user-{uuid4().hex[:8]}@leakwatch.example.com",
        password_hash="not-a-real-hash",
        display_name=display_name,
        role=role,
        is_banned=banned,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )


def make_report(
    owner: User,
    *,
    description: str = "Water gushing from a cracked main",
    issue_type: IssueType = IssueType.LEAKAGE,
    severity: Severity = Severity.MEDIUM,
    status: ReportStatus = ReportStatus.PENDING,
    created_at: datetime | None = None,
    latitude: float | None = 6.5244,
    longitude: float | None = 3.3792,
    location_address: str | None = None,
    photos: list[str] | None = None,
    assigned_to: str | None = None,
) -> Report:
    """Build an unsaved report owned by `owner`."""
    created = created_at or BASE_TIME
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
        assigned_to=assigned_to,
        created_at=created,
        updated_at=created,
        resolved_at=None,
    )
    report.owner = owner
    return report


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def reporter() -> User:
    return make_user(UserRole.REPORTER, display_name="Ada Reporter")


@pytest.fixture
def other_reporter() -> User:
    return make_user(UserRole.REPORTER, display_name="Bola Neighbour")


@pytest.fixture
def technician() -> User:
    return make_user(UserRole.TECHNICIAN, display_name="Tunde Technician")


@pytest.fixture
def administrator() -> User:
    return make_user(UserRole.ADMINISTRATOR, display_name="Amaka Admin")


@pytest.fixture
def banned_technician() -> User:
    return make_user(UserRole.TECHNICIAN, banned=True)


# =============================================================================
# Reports
# =============================================================================


@pytest.fixture
def report(reporter: User) -> Report:
    return make_report(reporter)


@pytest.fixture
def report_factory():
    """Build reports at increasing creation times."""
    counter = {"n": 0}

    def _make(owner: User, **kwargs) -> Report:
        counter["n"] += 1
        kwargs.setdefault("created_at", BASE_TIME + timedelta(minutes=counter["n"]))
        return make_report(owner, **kwargs)

    return _make


@pytest.fixture
def user_factory():
    """Build unsaved users."""
    return make_user
