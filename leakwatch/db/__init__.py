"""LeakWatch database module."""

from leakwatch.db.models import (
    AuditLog,
    Base,
    IssueType,
    Report,
    ReportStatus,
    Severity,
    User,
    UserRole,
    utcnow,
)
from leakwatch.db.session import (
    close_db,
    get_session,
    health_check,
    init_db,
)

__all__ = [
    # Base
    "Base",
    # Models
    "User",
    "Report",
    "AuditLog",
    # Enums
    "UserRole",
    "ReportStatus",
    "Severity",
    "IssueType",
    "utcnow",
    # Session
    "init_db",
    "close_db",
    "get_session",
    "health_check",
]
