"""
Authorization policy for LeakWatch.

One table decides which role may perform which operation. Every entry
point (API dependencies, lifecycle, entity scoping) asks `authorize`
instead of inspecting roles itself.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from leakwatch.config import get_logger
from leakwatch.db.models import User, UserRole
from leakwatch.services.auth import is_banned
from leakwatch.services.exceptions import Forbidden

logger = get_logger(__name__)


class Operation(str, Enum):
    """Operations subject to authorization."""

    CREATE_REPORT = "create_report"
    LIST_OWN_REPORTS = "list_own_reports"
    VIEW_REPORT = "view_report"
    LIST_ALL_REPORTS = "list_all_reports"
    UPDATE_REPORT = "update_report"
    MANAGE_PHOTOS = "manage_photos"
    EXPORT_REPORTS = "export_reports"
    VIEW_STATS = "view_stats"
    VIEW_TIMELINE = "view_timeline"
    LIST_USERS = "list_users"
    BAN_USER = "ban_user"
    CHANGE_ROLE = "change_role"


@dataclass(frozen=True)
class Rule:
    """Minimum role for an operation and whether it mutates state."""

    minimum_role: UserRole
    mutating: bool


# Higher rank = more privilege
ROLE_RANK: dict[UserRole, int] = {
    UserRole.REPORTER: 1,
    UserRole.TECHNICIAN: 2,
    UserRole.ADMINISTRATOR: 3,
}

AUTHORIZATION_MATRIX: dict[Operation, Rule] = {
    Operation.CREATE_REPORT: Rule(UserRole.REPORTER, mutating=True),
    Operation.LIST_OWN_REPORTS: Rule(UserRole.REPORTER, mutating=False),
    Operation.VIEW_REPORT: Rule(UserRole.REPORTER, mutating=False),
    Operation.LIST_ALL_REPORTS: Rule(UserRole.TECHNICIAN, mutating=False),
    Operation.UPDATE_REPORT: Rule(UserRole.TECHNICIAN, mutating=True),
    Operation.MANAGE_PHOTOS: Rule(UserRole.TECHNICIAN, mutating=True),
    Operation.EXPORT_REPORTS: Rule(UserRole.TECHNICIAN, mutating=False),
    Operation.VIEW_STATS: Rule(UserRole.TECHNICIAN, mutating=False),
    Operation.VIEW_TIMELINE: Rule(UserRole.TECHNICIAN, mutating=False),
    Operation.LIST_USERS: Rule(UserRole.ADMINISTRATOR, mutating=False),
    Operation.BAN_USER: Rule(UserRole.ADMINISTRATOR, mutating=True),
    Operation.CHANGE_ROLE: Rule(UserRole.ADMINISTRATOR, mutating=True),
}


@dataclass(frozen=True)
class AuthContext:
    """
    The resolved caller of one request, after authorization.

    Passed explicitly to handlers and services; there is no ambient
    "current user" anywhere else.
    """

    user: User
    operation: Operation

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role


def role_at_least(role: UserRole, minimum: UserRole) -> bool:
    """True when `role` carries at least the privileges of `minimum`."""
    return ROLE_RANK[role] >= ROLE_RANK[minimum]


def is_permitted(user: User, operation: Operation) -> bool:
    """Check an operation against the matrix without raising."""
    rule = AUTHORIZATION_MATRIX[operation]
    if rule.mutating and is_banned(user):
        return False
    return role_at_least(user.role, rule.minimum_role)


def authorize(user: User, operation: Operation) -> AuthContext:
    """
    Authorize a user for an operation.

    Banned users are refused every mutating operation; everyone is
    refused operations above their role.

    Raises:
        Forbidden: If the user may not perform the operation.
    """
    rule = AUTHORIZATION_MATRIX[operation]

    if rule.mutating and is_banned(user):
        logger.warning(
            "Banned user attempted mutating operation",
            user_id=str(user.id),
            operation=operation.value,
        )
        raise Forbidden("Account is banned", operation=operation.value)

    if not role_at_least(user.role, rule.minimum_role):
        logger.warning(
            "Operation denied for role",
            user_id=str(user.id),
            role=user.role.value,
            operation=operation.value,
        )
        raise Forbidden(
            f"{rule.minimum_role.value.capitalize()} role required",
            operation=operation.value,
        )

    return AuthContext(user=user, operation=operation)
