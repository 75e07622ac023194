"""
Integration tests for /api/admin roles and permissions endpoints.
"""

import pytest_asyncio

from app.services.permissions import ALL_PERMISSION_IDS


@pytest_asyncio.fixture
async def admin_headers(make_user):
    _, headers = await make_user("boss", roles=["admin"])
    return headers


class TestRoles:

    async def test_list_roles(self, client, admin_headers):
        response = await client.get("/api/admin/roles", headers=admin_headers)

        assert response.status_code == 200
        assert {r["id"] for r in response.json()} == {"owner", "admin", "user"}

    async def test_create_get_update_delete(self, client, admin_headers):
        created = await client.post(
            "/api/admin/roles",
            json={"name": "Support", "description": "Help desk", "permissions": ["users.view"]},
            headers=admin_headers,
        )
        assert created.status_code == 201
        role_id = created.json()["id"]
        assert created.json()["is_system"] is False

        fetched = await client.get(f"/api/admin/roles/{role_id}", headers=admin_headers)
        assert fetched.json()["permissions"] == ["users.view"]

        updated = await client.put(
            f"/api/admin/roles/{role_id}",
            json={"permissions": ["users.view", "logs.view"]},
            headers=admin_headers,
        )
        assert updated.json()["permissions"] == ["users.view", "logs.view"]
        assert updated.json()["description"] == "Help desk"

        deleted = await client.delete(f"/api/admin/roles/{role_id}", headers=admin_headers)
        assert deleted.json() == {"success": True, "message": "Role deleted"}

        missing = await client.get(f"/api/admin/roles/{role_id}", headers=admin_headers)
        assert missing.status_code == 404
        assert missing.json() == {"error": f"Role not found: {role_id}"}

    async def test_unknown_permission_rejected(self, client, admin_headers):
        response = await client.post(
            "/api/admin/roles",
            json={"name": "Broken", "permissions": ["users.view", "users.fly"]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == {"error": "Unknown permissions", "errors": ["users.fly"]}

    async def test_system_role_cannot_be_deleted(self, client, admin_headers):
        response = await client.delete("/api/admin/roles/owner", headers=admin_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Cannot delete system role"}

    async def test_init_roles_is_idempotent(self, client, admin_headers):
        response = await client.post("/api/admin/roles/init", headers=admin_headers)

        assert response.json()["message"] == "Default roles initialized (0 created)"

    async def test_plain_user_forbidden(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.get("/api/admin/roles", headers=headers)

        assert response.status_code == 403


class TestPermissions:

    async def test_grouped_catalog(self, client, admin_headers):
        response = await client.get("/api/admin/permissions", headers=admin_headers)

        data = response.json()
        assert set(data) >= {"Dashboard", "Store", "Jobs", "Security", "Maintenance"}
        assert data["Maintenance"][0] == {
            "id": "maintenance.view",
            "name": "View Maintenance",
            "description": "View maintenance mode",
            "category": "Maintenance",
        }

    async def test_check_permission(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.get(
            "/api/admin/permissions/check?permission=users.view", headers=headers
        )

        assert response.status_code == 200
        assert response.json() == {"permission": "users.view", "hasPermission": False}

    async def test_check_requires_login(self, client):
        response = await client.get("/api/admin/permissions/check?permission=users.view")

        assert response.status_code == 401

    async def test_current_user_permissions(self, client, admin_headers):
        response = await client.get("/api/admin/permissions/user", headers=admin_headers)

        assert response.json() == {"role": "admin", "permissions": ALL_PERMISSION_IDS}


class TestAssignRoles:

    async def test_assign_roles(self, client, admin_headers, make_user):
        user, headers = await make_user("member")

        response = await client.put(
            f"/api/admin/users/{user.user_id}/roles", json={"roles": ["admin"]}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["roles"] == ["admin"]
        assert response.json()["role"] == "admin"

        check = await client.get("/api/admin/permissions/check?permission=security.manage", headers=headers)
        assert check.json()["hasPermission"] is True

    async def test_assign_unknown_role(self, client, admin_headers, make_user):
        user, _ = await make_user("member")

        response = await client.put(
            f"/api/admin/users/{user.user_id}/roles", json={"roles": ["ghost"]}, headers=admin_headers
        )

        assert response.status_code == 404

    async def test_assign_unknown_user(self, client, admin_headers):
        response = await client.put(
            "/api/admin/users/999/roles", json={"roles": ["admin"]}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    async def test_assign_requires_roles(self, client, admin_headers, make_user):
        user, _ = await make_user("member")

        response = await client.put(
            f"/api/admin/users/{user.user_id}/roles", json={"roles": []}, headers=admin_headers
        )

        assert response.status_code == 422
