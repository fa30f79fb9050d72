"""
Unit tests for identity: password hashing, JWT tokens and revocation.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from jose import jwt

from leakwatch.config import get_settings
from leakwatch.db.models import UserRole
from leakwatch.services.auth import (
    ACCESS_TOKEN,
    BLACKLIST_PREFIX,
    REFRESH_TOKEN,
    blacklist_token,
    create_access_token,
    create_refresh_token,
    hash_password,
    is_token_blacklisted,
    resolve_identity,
    subject_of,
    verify_password,
    verify_token,
)
from leakwatch.services.exceptions import Unauthenticated


def _encode(payload: dict) -> str:
    settings = get_settings()
    return jwt.encode(
        payload,
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


# =============================================================================
# Passwords
# =============================================================================


class TestPasswords:
    """Tests for bcrypt password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")


# =============================================================================
# Tokens
# =============================================================================


class TestTokens:
    """Tests for access and refresh tokens."""

    def test_access_token_claims(self):
        user_id = uuid4()
        payload = verify_token(create_access_token(user_id, UserRole.TECHNICIAN))

        assert payload["sub"] == str(user_id)
        assert payload["role"] == "TECHNICIAN"
        assert payload["type"] == ACCESS_TOKEN

    def test_subject_of_access_token(self):
        user_id = uuid4()
        assert subject_of(create_access_token(user_id), ACCESS_TOKEN) == user_id

    def test_subject_of_refresh_token(self):
        user_id = uuid4()
        assert subject_of(create_refresh_token(user_id), REFRESH_TOKEN) == user_id

    def test_wrong_token_type_rejected(self):
        with pytest.raises(Unauthenticated):
            subject_of(create_refresh_token(uuid4()), ACCESS_TOKEN)

    def test_malformed_token_rejected(self):
        with pytest.raises(Unauthenticated):
            subject_of("not-a-jwt", ACCESS_TOKEN)

    def test_token_signed_with_other_secret_rejected(self):
        forged = jwt.encode(
            {"sub": str(uuid4()), "type": ACCESS_TOKEN},
            "another-secret-that-is-also-long-enough-to-use",
            algorithm="HS256",
        )
        with pytest.raises(Unauthenticated):
            subject_of(forged, ACCESS_TOKEN)

    def test_expired_token_rejected(self):
        past = datetime.now(UTC) - timedelta(hours=1)
        expired = _encode(
            {"sub": str(uuid4()), "type": ACCESS_TOKEN, "exp": past, "iat": past - timedelta(hours=1)}
        )
        with pytest.raises(Unauthenticated):
            subject_of(expired, ACCESS_TOKEN)

    def test_non_uuid_subject_rejected(self):
        token = _encode(
            {
                "sub": "someone",
                "type": ACCESS_TOKEN,
                "exp": datetime.now(UTC) + timedelta(hours=1),
            }
        )
        with pytest.raises(Unauthenticated):
            subject_of(token, ACCESS_TOKEN)


# =============================================================================
# Identity resolution
# =============================================================================


class TestResolveIdentity:
    """Tests for resolve_identity with a mocked session."""

    @pytest.mark.asyncio
    async def test_missing_token(self):
        with pytest.raises(Unauthenticated):
            await resolve_identity(AsyncMock(), None)

    @pytest.mark.asyncio
    async def test_unknown_user(self, monkeypatch):
        monkeypatch.setattr(
            "leakwatch.services.auth.get_user_by_id",
            AsyncMock(return_value=None),
        )
        with pytest.raises(Unauthenticated):
            await resolve_identity(AsyncMock(), create_access_token(uuid4()))

    @pytest.mark.asyncio
    async def test_banned_user_still_resolves(self, monkeypatch, banned_technician):
        lookup = AsyncMock(return_value=banned_technician)
        monkeypatch.setattr("leakwatch.services.auth.get_user_by_id", lookup)

        user = await resolve_identity(AsyncMock(), create_access_token(banned_technician.id))

        assert user is banned_technician
        assert lookup.await_args.args[1] == banned_technician.id


# =============================================================================
# Revocation
# =============================================================================


class TestBlacklist:
    """Tests for refresh token revocation in Redis."""

    @pytest.mark.asyncio
    async def test_without_redis(self):
        assert await is_token_blacklisted(None, "token") is False
        await blacklist_token(None, "token", 60)

    @pytest.mark.asyncio
    async def test_blacklist_sets_key_with_ttl(self):
        redis = AsyncMock()
        await blacklist_token(redis, "abc", 120)
        redis.setex.assert_awaited_once_with(f"{BLACKLIST_PREFIX}abc", 120, "1")

    @pytest.mark.asyncio
    async def test_is_blacklisted(self):
        redis = AsyncMock()
        redis.get.return_value = "1"
        assert await is_token_blacklisted(redis, "abc") is True
        redis.get.assert_awaited_once_with(f"{BLACKLIST_PREFIX}abc")

        redis.get.return_value = None
        assert await is_token_blacklisted(redis, "abc") is False
