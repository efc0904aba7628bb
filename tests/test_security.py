"""Tests for security features."""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import JWTError

from bugtracker.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    seconds_until_expiry,
    verify_password,
)
from bugtracker.middleware.audit_logger import mask_sensitive
from bugtracker.models.user import UserRole
from bugtracker.redis import RateLimiter, SessionStore, TokenBlacklist


class TestPasswordHashing:
    """Tests for Argon2 password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("SecurePass123!")

        assert hashed != "SecurePass123!"
        assert hashed.startswith("$argon2")
        assert verify_password("SecurePass123!", hashed)
        assert not verify_password("WrongPass123!", hashed)

    def test_verify_garbage_hash(self):
        assert not verify_password("SecurePass123!", "not-a-hash")


class TestTokens:
    """Tests for JWT creation and decoding."""

    def test_access_token_claims(self):
        user_id = str(uuid.uuid4())
        token = create_access_token(user_id, UserRole.TESTER, session_id="s1")

        payload = decode_token(token)
        assert payload["sub"] == user_id
        assert payload["role"] == "tester"
        assert payload["type"] == "access"
        assert payload["jti"]
        assert seconds_until_expiry(payload) > 0

    def test_refresh_token_returns_jti(self):
        token, jti = create_refresh_token("user-1", "s1")

        payload = decode_token(token)
        assert payload["jti"] == jti
        assert payload["type"] == "refresh"

    def test_expired_token_rejected(self):
        token = create_access_token(
            "user-1", UserRole.REPORTER, "s1", expires_delta=timedelta(seconds=-10)
        )

        with pytest.raises(JWTError):
            decode_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token("user-1", UserRole.REPORTER, "s1")

        with pytest.raises(JWTError):
            decode_token(token[:-2] + "xx")


class TestRedisHelpers:
    """Tests for the Redis-backed token, session and rate limit helpers."""

    @pytest.mark.asyncio
    async def test_blacklist_skips_expired_tokens(self, mock_redis):
        blacklist = TokenBlacklist(mock_redis)

        await blacklist.add("jti-1", 0)
        mock_redis.setex.assert_not_awaited()

        await blacklist.add("jti-2", 30)
        mock_redis.setex.assert_awaited_once_with("token_blacklist:jti-2", 30, "1")

    @pytest.mark.asyncio
    async def test_delete_all_user_sessions(self, mock_redis):
        mock_redis.smembers.return_value = {"a", "b"}

        removed = await SessionStore(mock_redis).delete_all_user_sessions("user-1")

        assert removed == 2

    @pytest.mark.asyncio
    async def test_rate_limiter_allows_under_limit(self, mock_redis):
        allowed, remaining, retry_after = await RateLimiter(mock_redis).is_allowed("k", 10)

        assert allowed
        assert remaining == 9
        assert retry_after == 0

    @pytest.mark.asyncio
    async def test_rate_limiter_blocks_over_limit(self, mock_redis):
        mock_redis.pipeline.return_value.execute.return_value = [0, 10, 1, True]
        mock_redis.zrange.return_value = [("old", 1704067190.0)]

        allowed, remaining, retry_after = await RateLimiter(mock_redis).is_allowed("k", 10)

        assert not allowed
        assert remaining == 0
        assert retry_after == 50


class TestHeaders:
    """Tests for response hardening."""

    @pytest.mark.asyncio
    async def test_security_headers_present(self, client: AsyncClient):
        response = await client.get("/health")

        headers = response.headers
        assert headers["x-content-type-options"] == "nosniff"
        assert headers["x-frame-options"] == "DENY"
        assert "default-src 'none'" in headers["content-security-policy"]

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_request_id_propagated(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["x-request-id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_oversized_body_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            content=b"x" * (1024 * 1024 + 1),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "REQUEST_TOO_LARGE"


class TestAuditMasking:
    def test_mask_sensitive_nested(self):
        masked = mask_sensitive(
            {"email": "a@b.c", "password": "secret", "nested": {"refresh_token": "t"}}
        )

        assert masked["email"] == "a@b.c"
        assert masked["password"] != "secret"
        assert masked["nested"]["refresh_token"] != "t"
