"""LeakWatch API routes."""

from leakwatch.api.routes import auth, reports, users

__all__ = [
    "auth",
    "reports",
    "users",
]
