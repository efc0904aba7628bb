"""Tests for user management endpoints."""

import uuid

import pytest
from httpx import AsyncClient

from bugtracker.models.bug import BugStatus
from bugtracker.models.user import User
from tests.conftest import auth_header


class TestDevelopers:
    """Tests for the assignable users list."""

    @pytest.mark.asyncio
    async def test_list_developers(
        self,
        client: AsyncClient,
        reporter: User,
        developer: User,
        other_developer: User,
        admin: User,
        tester: User,
    ):
        response = await client.get("/api/users/developers", headers=auth_header(reporter))

        assert response.status_code == 200
        ids = {u["id"] for u in response.json()}
        assert ids == {str(developer.id), str(other_developer.id), str(admin.id)}


class TestProfile:
    """Tests for self-service profile updates."""

    @pytest.mark.asyncio
    async def test_update_own_name(self, client: AsyncClient, reporter: User):
        response = await client.put(
            "/api/users/profile",
            headers=auth_header(reporter),
            json={"name": "Riley R."},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Riley R."
        assert response.json()["role"] == "reporter"

    @pytest.mark.asyncio
    async def test_profile_cannot_change_role(self, client: AsyncClient, reporter: User):
        response = await client.put(
            "/api/users/profile",
            headers=auth_header(reporter),
            json={"role": "admin"},
        )

        assert response.json()["role"] == "reporter"

    @pytest.mark.asyncio
    async def test_profile_email_conflict(self, client: AsyncClient, reporter: User, tester: User):
        response = await client.put(
            "/api/users/profile",
            headers=auth_header(reporter),
            json={"email": tester.email},
        )

        assert response.status_code == 409


class TestAdminUsers:
    """Tests for admin-only user management."""

    @pytest.mark.asyncio
    async def test_list_users_filtered_by_role(
        self, client: AsyncClient, admin: User, developer: User, other_developer: User, reporter: User
    ):
        response = await client.get(
            "/api/users",
            params={"role": "developer"},
            headers=auth_header(admin),
        )

        assert response.status_code == 200
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["reporter", "developer", "tester"])
    async def test_non_admin_cannot_list_users(
        self, client: AsyncClient, users_by_role, role: str
    ):
        user = users_by_role[role]

        response = await client.get("/api/users", headers=auth_header(user))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_user_with_admin_role(self, client: AsyncClient, admin: User):
        response = await client.post(
            "/api/users",
            headers=auth_header(admin),
            json={
                "name": "Second Admin",
                "email": "admin2@example.com",
                "password": "AdminPass456!",
                "role": "admin",
            },
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, client: AsyncClient, admin: User, tester: User):
        response = await client.post(
            "/api/users",
            headers=auth_header(admin),
            json={"name": "Dup", "email": tester.email, "password": "SomePass123!"},
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_get_user_with_bug_stats(
        self, client: AsyncClient, make_bug, admin: User, reporter: User, developer: User
    ):
        await make_bug(reporter, developer, status=BugStatus.OPEN)
        await make_bug(reporter, developer, status=BugStatus.CLOSED)
        await make_bug(reporter)

        response = await client.get(f"/api/users/{developer.id}", headers=auth_header(admin))

        assert response.status_code == 200
        stats = response.json()["bug_stats"]
        assert stats["assigned"] == {"open": 1, "closed": 1}
        assert stats["reported"] == {}

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, client: AsyncClient, admin: User):
        response = await client.get(f"/api/users/{uuid.uuid4()}", headers=auth_header(admin))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_user_role_and_deactivate(
        self, client: AsyncClient, admin: User, reporter: User
    ):
        response = await client.patch(
            f"/api/users/{reporter.id}",
            headers=auth_header(admin),
            json={"role": "tester", "is_active": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "tester"
        assert data["is_active"] is False

    @pytest.mark.asyncio
    async def test_deactivated_user_token_rejected(
        self, client: AsyncClient, admin: User, reporter: User
    ):
        headers = auth_header(reporter)
        await client.patch(
            f"/api/users/{reporter.id}",
            headers=auth_header(admin),
            json={"is_active": False},
        )

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_delete_unused_user(self, client: AsyncClient, admin: User, tester: User):
        response = await client.delete(f"/api/users/{tester.id}", headers=auth_header(admin))

        assert response.status_code == 200
        follow_up = await client.get(f"/api/users/{tester.id}", headers=auth_header(admin))
        assert follow_up.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_user_with_bugs_blocked(
        self, client: AsyncClient, make_bug, admin: User, reporter: User, developer: User
    ):
        await make_bug(reporter, developer)

        response = await client.delete(f"/api/users/{developer.id}", headers=auth_header(admin))

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "USER_IN_USE"
        assert error["details"][0]["assigned_bugs"] == 1

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_self(self, client: AsyncClient, admin: User):
        response = await client.delete(f"/api/users/{admin.id}", headers=auth_header(admin))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CANNOT_DELETE_SELF"
