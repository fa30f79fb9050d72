"""
Authentication API endpoints.

JWT-based registration and login with access and refresh tokens.
Includes rate limiting on login and refresh token blacklisting via Redis.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.exc import IntegrityError

from leakwatch.api.deps import DB, CurrentUser, RedisClient
from leakwatch.api.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from leakwatch.config import get_logger, get_settings
from leakwatch.db import utcnow
from leakwatch.db.models import User
from leakwatch.db.queries import create_user, get_user_by_email, get_user_by_id
from leakwatch.services.auth import (
    REFRESH_TOKEN,
    blacklist_token,
    create_access_token,
    create_refresh_token,
    hash_password,
    is_token_blacklisted,
    subject_of,
    verify_password,
    verify_token,
)
from leakwatch.services.exceptions import Unauthenticated, ValidationError

router = APIRouter()
logger = get_logger(__name__)

# Redis key prefix for login rate limiting
RATE_LIMIT_PREFIX = "rate:login:"


async def _check_login_rate_limit(redis, request: Request) -> None:
    """
    Enforce login rate limiting: max attempts per window per IP.

    Raises:
        HTTPException: 429 if rate limit exceeded.
    """
    if redis is None:
        return

    settings = get_settings()
    client_ip = request.client.host if request.client else "unknown"
    key = f"{RATE_LIMIT_PREFIX}{client_ip}"

    current = await redis.get(key)
    if current is not None and int(current) >= settings.login_rate_limit:
        logger.warning("Login rate limit exceeded", client_ip=client_ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Try again later.",
            headers={"Retry-After": str(settings.login_rate_limit_window)},
        )

    pipe = redis.pipeline()
    pipe.incr(key)
    pipe.expire(key, settings.login_rate_limit_window)
    await pipe.execute()


def _token_response(user: User) -> LoginResponse:
    settings = get_settings()
    return LoginResponse(
        access_token=create_access_token(user.id, user.role),
        refresh_token=create_refresh_token(user.id),
        token_type="bearer",
        expires_in=settings.jwt_expiry_hours * 3600,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(request: RegisterRequest, db: DB) -> LoginResponse:
    """
    Register a new reporter account and sign it in.

    New accounts are always reporters; only administrators change roles.

    Raises:
        ValidationError: If the email is already registered.
    """
    if await get_user_by_email(db, request.email) is not None:
        raise ValidationError("Email already registered", fields=["email"])

    display_name = request.display_name.strip() if request.display_name else None
    try:
        user = await create_user(
            db,
            email=request.email,
            password_hash=hash_password(request.password),
            display_name=display_name or None,
        )
        user.last_login_at = utcnow()
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await db.rollback()
        logger.info("Duplicate registration rejected")
        raise ValidationError("Email already registered", fields=["email"]) from None

    logger.info("User registered", user_id=str(user.id))
    return _token_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    raw_request: Request,
    db: DB,
    redis: RedisClient,
) -> LoginResponse:
    """
    Authenticate a user and return access + refresh tokens.

    Banned users may still sign in; what they may do is limited elsewhere.

    Raises:
        Unauthenticated: If the credentials are invalid.
        HTTPException: 429 if rate limit exceeded.
    """
    await _check_login_rate_limit(redis, raw_request)

    user = await get_user_by_email(db, request.email)

    if user is None or not verify_password(request.password, user.password_hash):
        logger.warning("Failed login attempt", email=request.email)
        raise Unauthenticated("Invalid email or password")

    user.last_login_at = utcnow()
    await db.commit()

    logger.info("User logged in", user_id=str(user.id), banned=user.is_banned)
    return _token_response(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshRequest,
    db: DB,
    redis: RedisClient,
) -> TokenResponse:
    """
    Issue a new access token using a valid refresh token.

    Raises:
        Unauthenticated: If the refresh token is invalid, expired, revoked,
            or its user no longer exists.
    """
    token = request.refresh_token

    if await is_token_blacklisted(redis, token):
        logger.warning("Blacklisted refresh token used")
        raise Unauthenticated("Token has been revoked")

    user = await get_user_by_id(db, subject_of(token, REFRESH_TOKEN))
    if user is None:
        raise Unauthenticated("User not found")

    settings = get_settings()
    logger.info("Token refreshed", user_id=str(user.id))

    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        refresh_token=token,
        token_type="bearer",
        expires_in=settings.jwt_expiry_hours * 3600,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: RefreshRequest,
    user: CurrentUser,
    redis: RedisClient,
) -> MessageResponse:
    """
    Logout by blacklisting the refresh token in Redis.

    The blacklist entry has the same TTL as the token's remaining lifetime,
    so entries auto-expire and don't accumulate.
    """
    token = request.refresh_token

    try:
        payload = verify_token(token)
    except JWTError:
        # Token already invalid, nothing to blacklist
        return MessageResponse(message="Logged out successfully")

    if payload.get("type") != REFRESH_TOKEN:
        raise ValidationError("Expected a refresh token", fields=["refresh_token"])

    exp = payload.get("exp", 0)
    remaining = max(int(exp - datetime.now(UTC).timestamp()), 0)

    if remaining > 0:
        await blacklist_token(redis, token, remaining)

    logger.info("User logged out", user_id=str(user.id))
    return MessageResponse(message="Logged out successfully")
