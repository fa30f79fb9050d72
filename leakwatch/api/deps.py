"""
FastAPI dependency injection.

Provides reusable dependencies for routes:
- Database sessions
- Redis connections
- Authentication and per-operation authorization
- The notification dispatcher
"""

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from leakwatch.config import bind_context
from leakwatch.db import User, get_session
from leakwatch.services.auth import resolve_identity
from leakwatch.services.notifications import NotificationDispatcher, get_dispatcher
from leakwatch.services.policy import AuthContext, Operation, authorize

security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields an async database session.

    Handles commit on success and rollback on error.

    Example:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_session() as session:
        yield session


async def get_redis(request: Request) -> Redis | None:
    """
    Dependency that returns the Redis connection from app state.

    Returns None when Redis is not configured; rate limiting and token
    revocation are then skipped.
    """
    return getattr(request.app.state, "redis", None)


def get_notifier() -> NotificationDispatcher:
    """Dependency that returns the status change notification dispatcher."""
    return get_dispatcher()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency that resolves the caller from the bearer token.

    Raises:
        Unauthenticated: If the token is missing, invalid, or its user is gone.
    """
    token = credentials.credentials if credentials else None
    user = await resolve_identity(db, token)
    bind_context(user_id=str(user.id))
    return user


def require(
    operation: Operation,
) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """
    Build a dependency that authorizes the caller for one operation.

    Usage:
        ctx: Annotated[AuthContext, Depends(require(Operation.UPDATE_REPORT))]

    The route receives the resolved AuthContext; unauthenticated callers get
    Unauthenticated and unauthorized ones Forbidden before the route runs.
    """

    async def _authorized(
        user: Annotated[User, Depends(get_current_user)],
    ) -> AuthContext:
        return authorize(user, operation)

    _authorized.__name__ = f"require_{operation.value}"
    return _authorized


# Type aliases for cleaner route signatures
DB = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[Redis | None, Depends(get_redis)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Notifier = Annotated[NotificationDispatcher, Depends(get_notifier)]
