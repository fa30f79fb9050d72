"""
Database queries for LeakWatch.

Common query patterns for users, reports and audit logs.
All queries use async SQLAlchemy patterns; none of them commit.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leakwatch.db.models import (
    AuditLog,
    IssueType,
    Report,
    ReportStatus,
    Severity,
    User,
    UserRole,
)


# =============================================================================
# User Queries
# =============================================================================


async def get_user_by_id(
    session: AsyncSession,
    user_id: UUID,
) -> User | None:
    """Get a user by ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(
    session: AsyncSession,
    email: str,
) -> User | None:
    """Find a user by email (case-insensitive)."""
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    display_name: str | None = None,
    role: UserRole = UserRole.REPORTER,
) -> User:
    """Create a new user."""
    user = User(
        email=email.strip().lower(),
        password_hash=password_hash,
        display_name=display_name,
        role=role,
        is_banned=False,
    )
    session.add(user)
    await session.flush()
    return user


async def list_users(
    session: AsyncSession,
    *,
    search: str | None = None,
    role: UserRole | None = None,
) -> list[User]:
    """List users, newest first, optionally filtered by email/name and role."""
    query = select(User)

    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(func.coalesce(User.display_name, "")).like(pattern),
            )
        )
    if role is not None:
        query = query.where(User.role == role)

    result = await session.execute(query.order_by(desc(User.created_at)))
    return list(result.scalars().all())


async def count_users(session: AsyncSession) -> int:
    """Count registered users."""
    result = await session.execute(select(func.count(User.id)))
    return result.scalar_one()


# =============================================================================
# Report Queries
# =============================================================================


async def get_report_by_id(
    session: AsyncSession,
    report_id: UUID,
) -> Report | None:
    """Get a report by ID with its owner loaded."""
    result = await session.execute(select(Report).where(Report.id == report_id))
    return result.scalar_one_or_none()


async def list_reports(
    session: AsyncSession,
    *,
    owner_id: UUID | None = None,
) -> list[Report]:
    """
    List reports newest first.

    Args:
        session: Async database session
        owner_id: Restrict to reports owned by this user (None = all reports)
    """
    query = select(Report)
    if owner_id is not None:
        query = query.where(Report.user_id == owner_id)

    result = await session.execute(
        query.order_by(desc(Report.created_at), desc(Report.id))
    )
    return list(result.scalars().all())


async def add_report(session: AsyncSession, report: Report) -> Report:
    """Persist a new report."""
    session.add(report)
    await session.flush()
    return report


# =============================================================================
# Statistics Queries
# =============================================================================


async def get_report_stats(session: AsyncSession) -> dict[str, Any]:
    """
    Get report statistics for the operator dashboard.

    Returns:
        Dict with total, per-status counts, and breakdowns by severity
        and issue type (every enum member present, zero when absent).
    """
    total_result = await session.execute(select(func.count(Report.id)))
    total = total_result.scalar_one()

    async def _grouped(column, enum_cls) -> dict[str, int]:
        rows = await session.execute(
            select(column, func.count(Report.id)).group_by(column)
        )
        counts = {member.value: 0 for member in enum_cls}
        for value, count in rows.all():
            key = value.value if hasattr(value, "value") else str(value)
            counts[key] = count
        return counts

    by_status = await _grouped(Report.status, ReportStatus)
    by_severity = await _grouped(Report.severity, Severity)
    by_issue_type = await _grouped(Report.issue_type, IssueType)

    return {
        "total": total,
        "pending": by_status[ReportStatus.PENDING.value],
        "in_progress": by_status[ReportStatus.IN_PROGRESS.value],
        "resolved": by_status[ReportStatus.RESOLVED.value],
        "critical": by_severity[Severity.CRITICAL.value],
        "by_severity": by_severity,
        "by_issue_type": by_issue_type,
        "total_users": await count_users(session),
    }


# =============================================================================
# Audit Log Queries
# =============================================================================


async def create_audit_log(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    action: str,
    actor_id: str | None = None,
    changes: dict[str, Any] | None = None,
) -> AuditLog:
    """
    Record an audit log entry.

    Args:
        session: Async database session
        entity_type: Kind of entity changed ("report", "user")
        entity_id: ID of the changed entity
        action: What happened ("create", "update", "photo_added", "ban", ...)
        actor_id: ID of the user who made the change
        changes: JSON-serialisable description of the change
    """
    log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        changes=changes or {},
    )
    session.add(log)
    await session.flush()
    return log


async def get_audit_logs_for_entity(
    session: AsyncSession,
    entity_type: str,
    entity_id: UUID,
) -> list[AuditLog]:
    """Get all audit log entries for an entity, oldest first."""
    result = await session.execute(
        select(AuditLog)
        .where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
        )
        .order_by(AuditLog.created_at)
    )
    return list(result.scalars().all())
