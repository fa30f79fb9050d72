"""
User API endpoints.

The caller's own profile, and user administration (listing, banning,
role changes) for administrators.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from leakwatch.api.deps import DB, CurrentUser, require
from leakwatch.api.schemas import (
    BanRequest,
    RoleChangeRequest,
    UserListResponse,
    UserResponse,
)
from leakwatch.config import get_logger
from leakwatch.db.models import UserRole
from leakwatch.db.queries import create_audit_log, get_user_by_id, list_users
from leakwatch.services.exceptions import NotFound, ValidationError
from leakwatch.services.parsing import parse_enum
from leakwatch.services.policy import AuthContext, Operation

router = APIRouter()
logger = get_logger(__name__)


@router.get("/me", response_model=UserResponse)
async def get_me(user: CurrentUser) -> UserResponse:
    """Get the caller's profile."""
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
async def get_users(
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.LIST_USERS))],
    search: str | None = None,
    role: str | None = None,
) -> UserListResponse:
    """
    List users, newest first.

    `search` matches email or display name; `role` filters by role
    ("all" or empty for every role).
    """
    role_filter = None
    if role and role.strip().lower() != "all":
        role_filter = parse_enum(UserRole, role, "role")

    users = await list_users(db, search=search, role=role_filter)

    logger.info(
        "Listed users",
        admin_id=str(ctx.user_id),
        total=len(users),
        role=role_filter.value if role_filter else None,
    )

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=len(users),
    )


@router.put("/{user_id}/ban", response_model=UserResponse)
async def set_ban(
    user_id: UUID,
    request: BanRequest,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.BAN_USER))],
) -> UserResponse:
    """
    Ban or unban a user.

    Banned users keep read access but are refused every mutating operation.

    Raises:
        NotFound: If the user does not exist.
        ValidationError: If an administrator tries to ban themselves.
    """
    target = await get_user_by_id(db, user_id)
    if target is None:
        raise NotFound("user", user_id)
    if target.id == ctx.user_id and request.banned:
        raise ValidationError("Administrators cannot ban themselves", fields=["banned"])

    previous = target.is_banned
    target.is_banned = request.banned

    await create_audit_log(
        db,
        entity_type="user",
        entity_id=target.id,
        action="ban" if request.banned else "unban",
        actor_id=str(ctx.user_id),
        changes={"is_banned": {"old": previous, "new": request.banned}},
    )
    await db.commit()

    logger.info(
        "User ban updated",
        user_id=str(target.id),
        admin_id=str(ctx.user_id),
        banned=request.banned,
    )
    return UserResponse.model_validate(target)


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: UUID,
    request: RoleChangeRequest,
    db: DB,
    ctx: Annotated[AuthContext, Depends(require(Operation.CHANGE_ROLE))],
) -> UserResponse:
    """
    Change a user's role.

    Raises:
        NotFound: If the user does not exist.
        ValidationError: If the role is unknown, or an administrator tries
            to demote themselves.
    """
    new_role = parse_enum(UserRole, request.role, "role")

    target = await get_user_by_id(db, user_id)
    if target is None:
        raise NotFound("user", user_id)
    if target.id == ctx.user_id and new_role != UserRole.ADMINISTRATOR:
        raise ValidationError("Administrators cannot demote themselves", fields=["role"])

    previous = target.role
    target.role = new_role

    await create_audit_log(
        db,
        entity_type="user",
        entity_id=target.id,
        action="role_change",
        actor_id=str(ctx.user_id),
        changes={"role": {"old": previous.value, "new": new_role.value}},
    )
    await db.commit()

    logger.info(
        "User role changed",
        user_id=str(target.id),
        admin_id=str(ctx.user_id),
        old_role=previous.value,
        new_role=new_role.value,
    )
    return UserResponse.model_validate(target)
