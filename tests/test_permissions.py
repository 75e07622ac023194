"""
Tests for role-based permission helpers and PermissionService.
"""

import pytest

from app.core.exceptions import (RoleNotFoundError, SystemRoleError,
                                 UserNotFoundError)
from app.services.permissions import (ALL_PERMISSION_IDS, SYSTEM_ROLES,
                                      PermissionService, get_permission_by_id,
                                      get_permissions_by_category,
                                      has_all_permissions, has_any_permission,
                                      has_permission)


@pytest.fixture
def service():
    return PermissionService()


class TestPermissionCatalog:

    def test_ids_are_unique(self):
        assert len(ALL_PERMISSION_IDS) == len(set(ALL_PERMISSION_IDS))

    def test_lookup_by_id(self):
        permission = get_permission_by_id("jobs.applications.manage")

        assert permission.category == "Jobs"
        assert permission.to_dict()["name"] == "Manage Applications"
        assert get_permission_by_id("nope") is None

    def test_grouped_by_category(self):
        grouped = get_permissions_by_category()

        assert {p.id for p in grouped["Maintenance"]} == {"maintenance.view", "maintenance.manage"}
        assert sum(len(v) for v in grouped.values()) == len(ALL_PERMISSION_IDS)

    def test_set_helpers(self):
        owned = ["users.view", "roles.view"]

        assert has_permission(owned, "users.view")
        assert not has_permission(owned, "users.edit")
        assert has_any_permission(owned, ["users.edit", "roles.view"])
        assert not has_any_permission(owned, [])
        assert has_all_permissions(owned, ["users.view", "roles.view"])
        assert not has_all_permissions(owned, ["users.view", "users.edit"])


class TestDefaultRoles:

    async def test_create_default_roles_is_idempotent(self, session, service):
        assert await service.create_default_roles(session) == 3
        assert await service.create_default_roles(session) == 0

        roles = {r.id: r for r in await service.get_all_roles(session)}
        assert set(roles) == {"owner", "admin", "user"}
        assert all(r.is_system for r in roles.values())
        assert roles["user"].permissions == []
        assert roles["admin"].permissions == ALL_PERMISSION_IDS


class TestRoleCrud:

    async def test_create_update_delete(self, session, service, default_roles):
        role = await service.create_role(session, "Support", "Help desk", ["users.view"])

        assert len(role.id) == 32
        assert role.is_system is False

        updated = await service.update_role(session, role.id, {"permissions": ["users.view", "users.edit"]})
        assert updated.permissions == ["users.view", "users.edit"]
        assert updated.name == "Support"

        assert await service.delete_role(session, role.id) is True
        with pytest.raises(RoleNotFoundError):
            await service.get_role(session, role.id)

    async def test_system_role_cannot_be_deleted(self, session, service, default_roles):
        with pytest.raises(SystemRoleError):
            await service.delete_role(session, SYSTEM_ROLES.ADMIN)

    async def test_update_missing_role(self, session, service):
        with pytest.raises(RoleNotFoundError):
            await service.update_role(session, "missing", {"name": "x"})


class TestUserPermissions:

    async def test_admin_and_owner_get_everything(self, session, service, make_user):
        admin, _ = await make_user("boss", roles=["admin"])
        owner, _ = await make_user("founder", roles=["owner"])

        assert await service.get_user_permissions(session, admin.user_id) == ALL_PERMISSION_IDS
        assert await service.get_user_permissions(session, owner.user_id) == ALL_PERMISSION_IDS

    async def test_plain_user_has_nothing(self, session, service, make_user):
        user, _ = await make_user("member")

        assert await service.get_user_permissions(session, user.user_id) == []
        assert await service.check_permission(session, user.user_id, "users.view") is False

    async def test_custom_roles_are_merged(self, session, service, make_user):
        support = await service.create_role(session, "Support", permissions=["users.view", "logs.view"])
        editor = await service.create_role(session, "Editor", permissions=["content.edit", "users.view"])
        user, _ = await make_user("helper", roles=["user", support.id, editor.id, "ghost"])

        permissions = await service.get_user_permissions(session, user.user_id)

        assert permissions == ["users.view", "logs.view", "content.edit"]
        assert await service.check_any_permission(session, user.user_id, ["roles.edit", "logs.view"])

    async def test_unknown_user(self, session, service):
        assert await service.get_user_permissions(session, 999) == []
        assert await service.get_user_role_and_permissions(session, 999) == {
            "role": "user",
            "permissions": [],
        }

    async def test_role_and_permissions(self, session, service, make_user):
        user, _ = await make_user("boss", roles=["admin", "user"])

        result = await service.get_user_role_and_permissions(session, user.user_id)

        assert result["role"] == "admin"
        assert result["permissions"] == ALL_PERMISSION_IDS


class TestRoleAssignment:

    async def test_assign_replaces_roles(self, session, service, make_user):
        user, _ = await make_user("member")

        updated = await service.assign_roles_to_user(session, user.user_id, ["admin", "user"])

        assert updated.roles == ["admin", "user"]
        assert updated.role == "admin"

    async def test_assign_unknown_role(self, session, service, make_user):
        user, _ = await make_user("member")

        with pytest.raises(RoleNotFoundError):
            await service.assign_roles_to_user(session, user.user_id, ["admin", "ghost"])

    async def test_assign_unknown_user(self, session, service, default_roles):
        with pytest.raises(UserNotFoundError):
            await service.assign_roles_to_user(session, 999, ["admin"])

    async def test_add_role_is_idempotent(self, session, service, make_user):
        user, _ = await make_user("member")

        await service.add_role_to_user(session, user.user_id, "admin")
        updated = await service.add_role_to_user(session, user.user_id, "admin")

        assert updated.roles == ["user", "admin"]

    async def test_remove_last_role_falls_back_to_user(self, session, service, make_user):
        user, _ = await make_user("boss", roles=["admin"])

        updated = await service.remove_role_from_user(session, user.user_id, "admin")

        assert updated.roles == ["user"]
        assert updated.role == "user"
