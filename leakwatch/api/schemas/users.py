"""
Pydantic schemas for Users API.
"""

from datetime import datetime

from leakwatch.api.schemas.base import CamelCaseModel, IDMixin
from leakwatch.db.models import UserRole


class UserResponse(IDMixin):
    """User profile."""

    email: str
    display_name: str | None
    role: UserRole
    is_banned: bool
    last_login_at: datetime | None = None
    created_at: datetime


class UserListResponse(CamelCaseModel):
    """All users matching an administrator's filters."""

    items: list[UserResponse]
    total: int


class BanRequest(CamelCaseModel):
    """Set or clear a user's ban."""

    banned: bool


class RoleChangeRequest(CamelCaseModel):
    """Change a user's role."""

    role: str
