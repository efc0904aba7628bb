"""Tests for authentication endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.config import settings
from bugtracker.core.security import create_refresh_token, decode_token, verify_password
from bugtracker.models.user import User
from tests.conftest import auth_header

REGISTER_PAYLOAD = {
    "name": "New Person",
    "email": "New.Person@Example.com",
    "password": "SecurePass123!",
}


class TestRegister:
    """Tests for user registration endpoint."""

    @pytest.mark.asyncio
    async def test_register_success_defaults_to_reporter(self, client: AsyncClient):
        response = await client.post("/api/auth/register", json=REGISTER_PAYLOAD)

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["role"] == "reporter"
        assert data["user"]["email"] == "new.person@example.com"
        assert decode_token(data["access_token"])["role"] == "reporter"

    @pytest.mark.asyncio
    async def test_register_with_developer_role(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "role": "developer"},
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "developer"

    @pytest.mark.asyncio
    async def test_register_admin_role_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "role": "admin"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_register_weak_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "password": "alllowercase1!"},
        )

        assert response.status_code == 422
        fields = [d["field"] for d in response.json()["error"]["details"]]
        assert "password" in fields

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "email": "invalid-email"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_name_too_long(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "name": "x" * 51},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, reporter: User):
        response = await client.post(
            "/api/auth/register",
            json={**REGISTER_PAYLOAD, "email": reporter.email.upper()},
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT_ERROR"


class TestLogin:
    """Tests for login endpoint."""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, developer: User, mock_redis):
        response = await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "DevPass123!"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["expires_in"] == settings.access_token_expire_minutes * 60
        assert data["user"]["id"] == str(developer.id)
        assert data["user"]["name"] == developer.name
        assert "password_hash" not in data["user"]
        # Session stored for refresh-token rotation
        mock_redis.hset.assert_awaited()

    @pytest.mark.asyncio
    async def test_login_records_last_login(self, client: AsyncClient, developer: User):
        await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "DevPass123!"},
        )

        assert developer.last_login is not None

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "DevPass123!"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, developer: User):
        response = await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "WrongPass123!"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid credentials"
        assert developer.failed_login_attempts == 1

    @pytest.mark.asyncio
    async def test_login_locks_after_repeated_failures(
        self, client: AsyncClient, developer: User
    ):
        for _ in range(settings.account_lockout_threshold):
            await client.post(
                "/api/auth/login",
                json={"email": developer.email, "password": "WrongPass123!"},
            )

        response = await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "DevPass123!"},
        )

        assert response.status_code == 423
        assert response.json()["error"]["code"] == "ACCOUNT_LOCKED"

    @pytest.mark.asyncio
    async def test_login_after_lock_expires(
        self, client: AsyncClient, db_session: AsyncSession, developer: User
    ):
        developer.failed_login_attempts = 5
        developer.locked_until = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "DevPass123!"},
        )

        assert response.status_code == 200
        assert developer.failed_login_attempts == 0

    @pytest.mark.asyncio
    async def test_login_deactivated_account(
        self, client: AsyncClient, db_session: AsyncSession, developer: User
    ):
        developer.is_active = False
        await db_session.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": developer.email, "password": "DevPass123!"},
        )

        assert response.status_code == 401
        assert "deactivated" in response.json()["error"]["message"]


class TestGetMe:
    """Tests for current user profile endpoint."""

    @pytest.mark.asyncio
    async def test_get_me_includes_permissions(self, client: AsyncClient, tester: User):
        response = await client.get("/api/auth/me", headers=auth_header(tester))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == tester.email
        assert data["role"] == "tester"
        assert "reopen_bug" in data["permissions"]
        assert "change_status" not in data["permissions"]

    @pytest.mark.asyncio
    async def test_get_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "AUTHENTICATION_ERROR"
        assert error["request_id"]

    @pytest.mark.asyncio
    async def test_get_me_invalid_token(self, client: AsyncClient):
        response = await client.get(
            "/api/auth/me",
            headers={"Authorization": "Bearer invalid-token"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_get_me_revoked_token(self, client: AsyncClient, tester: User, mock_redis):
        mock_redis.exists.return_value = 1

        response = await client.get("/api/auth/me", headers=auth_header(tester))

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token has been revoked"

    @pytest.mark.asyncio
    async def test_refresh_token_rejected_as_access_token(
        self, client: AsyncClient, tester: User
    ):
        refresh_token, _ = create_refresh_token(str(tester.id), "session-1")

        response = await client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {refresh_token}"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid token type"


class TestRefresh:
    """Tests for token refresh endpoint."""

    @pytest.mark.asyncio
    async def test_refresh_success_rotates_tokens(
        self, client: AsyncClient, developer: User, mock_redis
    ):
        refresh_token, jti = create_refresh_token(str(developer.id), "session-1")
        mock_redis.hgetall.return_value = {"user_id": str(developer.id), "refresh_token": jti}

        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": refresh_token},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["refresh_token"] != refresh_token
        assert data["user"]["id"] == str(developer.id)
        # Old refresh token is revoked
        blacklisted = [call.args[0] for call in mock_redis.setex.await_args_list]
        assert f"token_blacklist:{jti}" in blacklisted

    @pytest.mark.asyncio
    async def test_refresh_unknown_session(self, client: AsyncClient, developer: User):
        refresh_token, _ = create_refresh_token(str(developer.id), "session-1")

        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": refresh_token},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Session expired"

    @pytest.mark.asyncio
    async def test_refresh_stale_token_in_session(
        self, client: AsyncClient, developer: User, mock_redis
    ):
        refresh_token, _ = create_refresh_token(str(developer.id), "session-1")
        mock_redis.hgetall.return_value = {"user_id": str(developer.id), "refresh_token": "newer"}

        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": refresh_token},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_invalid_token(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/refresh",
            json={"refresh_token": "invalid-token"},
        )

        assert response.status_code == 401


class TestLogout:
    """Tests for logout endpoint."""

    @pytest.mark.asyncio
    async def test_logout_revokes_access_token(
        self, client: AsyncClient, reporter: User, mock_redis
    ):
        response = await client.post(
            "/api/auth/logout",
            headers=auth_header(reporter),
            json={},
        )

        assert response.status_code == 200
        assert "logged out" in response.json()["message"].lower()
        mock_redis.setex.assert_awaited()

    @pytest.mark.asyncio
    async def test_logout_without_body(self, client: AsyncClient, reporter: User):
        response = await client.post("/api/auth/logout", headers=auth_header(reporter))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_logout_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 401


class TestChangePassword:
    """Tests for password change endpoint."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["post", "put"])
    async def test_change_password_success(
        self, client: AsyncClient, reporter: User, method: str
    ):
        response = await client.request(
            method.upper(),
            "/api/auth/change-password",
            headers=auth_header(reporter),
            json={"current_password": "ReportPass123!", "new_password": "BrandNew123!"},
        )

        assert response.status_code == 200
        assert verify_password("BrandNew123!", reporter.password_hash)

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client: AsyncClient, reporter: User):
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_header(reporter),
            json={"current_password": "NotMine123!", "new_password": "BrandNew123!"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CURRENT_PASSWORD"

    @pytest.mark.asyncio
    async def test_change_password_weak_new_password(
        self, client: AsyncClient, reporter: User
    ):
        response = await client.post(
            "/api/auth/change-password",
            headers=auth_header(reporter),
            json={"current_password": "ReportPass123!", "new_password": "weak"},
        )

        assert response.status_code == 422
