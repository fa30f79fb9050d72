"""
Authentication service for LeakWatch.

Handles password hashing, JWT token creation/verification, identity
resolution from a bearer token, role predicates, and refresh token
blacklisting via Redis.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from leakwatch.config import get_logger, get_settings
from leakwatch.db.models import User, UserRole
from leakwatch.db.queries import get_user_by_id
from leakwatch.services.exceptions import Unauthenticated

logger = get_logger(__name__)

# Bcrypt password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Redis key prefix for blacklisted refresh tokens
BLACKLIST_PREFIX = "token:blacklist:"

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


# =============================================================================
# Passwords
# =============================================================================


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


# =============================================================================
# Tokens
# =============================================================================


def create_access_token(user_id: str | UUID, role: UserRole | str = UserRole.REPORTER) -> str:
    """
    Create a JWT access token.

    The role claim is informational only; authorization always uses the
    role stored on the user record so role changes and bans apply at once.

    Args:
        user_id: User UUID (converted to string).
        role: User role at issue time.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, UserRole) else str(role),
        "type": ACCESS_TOKEN,
        "exp": now + timedelta(hours=settings.jwt_expiry_hours),
        "iat": now,
    }
    return jwt.encode(
        payload,
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def create_refresh_token(user_id: str | UUID) -> str:
    """
    Create a JWT refresh token.

    Args:
        user_id: User UUID (converted to string).

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "type": REFRESH_TOKEN,
        "exp": now + timedelta(days=settings.jwt_refresh_expiry_days),
        "iat": now,
    }
    return jwt.encode(
        payload,
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict:
    """
    Decode and verify a JWT token.

    Raises:
        ExpiredSignatureError: If the token has expired.
        JWTError: If the token is invalid or malformed.
    """
    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algorithm],
    )


def subject_of(token: str, expected_type: str) -> UUID:
    """
    Return the user ID a token was issued for.

    Raises:
        Unauthenticated: If the token is invalid, expired, of the wrong
            type, or carries no usable subject.
    """
    try:
        payload = verify_token(token)
    except JWTError as e:
        raise Unauthenticated("Invalid or expired token") from e

    if payload.get("type") != expected_type:
        raise Unauthenticated("Invalid token type")

    subject = payload.get("sub")
    try:
        return UUID(str(subject))
    except ValueError as e:
        raise Unauthenticated("Invalid token payload") from e


async def resolve_identity(session: AsyncSession, token: str | None) -> User:
    """
    Resolve a bearer access token to the user it was issued for.

    Banned users still resolve; callers decide what a ban forbids.

    Raises:
        Unauthenticated: If the token is missing or invalid, or the user
            no longer exists.
    """
    if not token:
        raise Unauthenticated("Authentication required")

    user = await get_user_by_id(session, subject_of(token, ACCESS_TOKEN))
    if user is None:
        raise Unauthenticated("User not found")
    return user


# =============================================================================
# Role predicates
# =============================================================================


def is_administrator(user: User) -> bool:
    """True for administrators."""
    return user.role == UserRole.ADMINISTRATOR


def is_technician_or_above(user: User) -> bool:
    """True for technicians and administrators."""
    return user.role in (UserRole.TECHNICIAN, UserRole.ADMINISTRATOR)


def is_banned(user: User) -> bool:
    """True when an administrator has banned the user."""
    return bool(user.is_banned)


# =============================================================================
# Refresh token revocation
# =============================================================================


async def is_token_blacklisted(redis_client, token: str) -> bool:
    """
    Check if a refresh token has been blacklisted (logged out).

    Args:
        redis_client: Async Redis client, or None when Redis is not configured.
        token: The refresh token to check.
    """
    if redis_client is None:
        return False
    result = await redis_client.get(f"{BLACKLIST_PREFIX}{token}")
    return result is not None


async def blacklist_token(redis_client, token: str, expires_in: int) -> None:
    """
    Add a refresh token to the blacklist in Redis.

    The blacklist entry expires when the token would have expired,
    so we don't accumulate stale entries.

    Args:
        redis_client: Async Redis client, or None when Redis is not configured.
        token: The refresh token to blacklist.
        expires_in: Seconds until the token expires (TTL for the blacklist entry).
    """
    if redis_client is None:
        logger.warning("Redis unavailable, cannot blacklist token")
        return
    await redis_client.setex(
        f"{BLACKLIST_PREFIX}{token}",
        expires_in,
        "1",
    )
