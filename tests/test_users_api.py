"""
Integration tests for /api/admin/users endpoints.
"""

import pytest_asyncio


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("boss", roles=["admin"])


class TestUserAdmin:

    async def test_list_users(self, client, admin, make_user):
        _, headers = admin
        await make_user("member")

        response = await client.get("/api/admin/users?limit=1", headers=headers)

        data = response.json()
        assert response.status_code == 200
        assert data["total"] == 2
        assert data["limit"] == 1
        assert len(data["users"]) == 1

    async def test_get_user(self, client, admin, make_user):
        _, headers = admin
        member, _ = await make_user("member")

        response = await client.get(f"/api/admin/users/{member.user_id}", headers=headers)

        assert response.json()["username"] == "member"

    async def test_get_missing_user(self, client, admin):
        _, headers = admin

        response = await client.get("/api/admin/users/999", headers=headers)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "User not found"

    async def test_update_user(self, client, admin, make_user):
        _, headers = admin
        member, _ = await make_user("member")

        response = await client.put(
            f"/api/admin/users/{member.user_id}",
            json={"bio": "Hello", "is_active": False},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["bio"] == "Hello"
        assert response.json()["is_active"] is False

    async def test_update_duplicate_email(self, client, admin, make_user):
        _, headers = admin
        member, _ = await make_user("member")

        response = await client.put(
            f"/api/admin/users/{member.user_id}", json={"email": "boss@example.com"}, headers=headers
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "Email already in use"

    async def test_update_without_fields(self, client, admin, make_user):
        _, headers = admin
        member, _ = await make_user("member")

        response = await client.put(f"/api/admin/users/{member.user_id}", json={}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "No fields to update"

    async def test_delete_user(self, client, admin, make_user):
        _, headers = admin
        member, _ = await make_user("member")

        deleted = await client.delete(f"/api/admin/users/{member.user_id}", headers=headers)
        missing = await client.delete(f"/api/admin/users/{member.user_id}", headers=headers)

        assert deleted.status_code == 204
        assert missing.status_code == 404

    async def test_member_forbidden(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.get("/api/admin/users", headers=headers)

        assert response.status_code == 403
