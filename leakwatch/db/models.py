"""
SQLAlchemy 2.0 async models for the LeakWatch database.

Uses mapped_column syntax with full type hints. Column types are kept
portable (Uuid, JSON) so the same models run on PostgreSQL in production
and on SQLite in the test suite.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


# JSON on every backend, JSONB where PostgreSQL is available
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# Enum Types
# =============================================================================


class UserRole(str, PyEnum):
    """User roles, least privileged first."""

    REPORTER = "REPORTER"
    TECHNICIAN = "TECHNICIAN"
    ADMINISTRATOR = "ADMINISTRATOR"


class ReportStatus(str, PyEnum):
    """Report status workflow."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"


class Severity(str, PyEnum):
    """Severity levels for triage."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class IssueType(str, PyEnum):
    """Issue classification."""

    LEAKAGE = "LEAKAGE"
    WATER_QUALITY_PROBLEM = "WATER_QUALITY_PROBLEM"
    OTHER = "OTHER"


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """Registered users: reporters and operators."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), default=None)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        default=UserRole.REPORTER,
        nullable=False,
    )
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class Report(Base):
    """Water infrastructure issue reports."""

    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint(
            "(latitude IS NULL) = (longitude IS NULL)",
            name="coordinates_paired",
        ),
        CheckConstraint(
            "latitude IS NOT NULL OR location_address IS NOT NULL",
            name="location_present",
        ),
        Index("idx_reports_user_created", "user_id", "created_at"),
        Index("idx_reports_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    issue_type: Mapped[IssueType] = mapped_column(
        Enum(IssueType, name="issue_type", values_callable=_enum_values),
        nullable=False,
    )
    severity: Mapped[Severity] = mapped_column(
        Enum(Severity, name="severity_level", values_callable=_enum_values),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Location: coordinates and/or a free-text address
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)
    location_address: Mapped[str | None] = mapped_column(Text, default=None)

    # Encoded photo payloads, order significant
    photos: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)

    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus, name="report_status", values_callable=_enum_values),
        default=ReportStatus.PENDING,
        nullable=False,
    )
    assigned_to: Mapped[str | None] = mapped_column(String(255), default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="joined")


class AuditLog(Base):
    """Track report and user changes."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_logs_entity", "entity_type", "entity_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(100), default=None)
    changes: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
