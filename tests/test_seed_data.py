"""
Tests for startup seeding and the init_roles CLI.
"""

import pytest

from app.cli import init_roles
from app.core.config import settings
from app.repositories.user import UserRepository
from app.utils.seed_data import ensure_owner, init_seed_data

PASSWORD = "Str0ng!Pass9"


class TestEnsureOwner:

    async def test_promotes_existing_user(self, session, make_user):
        user, _ = await make_user("founder", roles=["user", "admin"])

        owner = await ensure_owner(session, user.email)

        assert owner.roles == ["owner", "admin"]
        assert owner.role == "owner"

    async def test_creates_missing_owner(self, session, default_roles):
        owner = await ensure_owner(session, "founder@example.com", PASSWORD)

        assert owner.username == "founder"
        assert owner.roles == ["owner"]
        assert owner.verify_password(PASSWORD)

    async def test_missing_without_password(self, session, default_roles):
        assert await ensure_owner(session, "nobody@example.com") is None

    async def test_already_owner_unchanged(self, session, make_user):
        user, _ = await make_user("founder", roles=["owner"])

        owner = await ensure_owner(session, user.email)

        assert owner.roles == ["owner"]


class TestInitSeedData:

    async def test_roles_and_owner(self, session, monkeypatch):
        monkeypatch.setattr(settings, "OWNER_EMAIL", "founder@example.com")
        monkeypatch.setattr(settings, "OWNER_PASSWORD", PASSWORD)

        await init_seed_data(session)
        await init_seed_data(session)

        owner = await UserRepository().get_by_email(session, "founder@example.com")
        assert owner.roles == ["owner"]
        assert await UserRepository().count(session) == 1

    async def test_roles_only(self, session):
        from app.services.permissions import PermissionService

        await init_seed_data(session)

        roles = await PermissionService().get_all_roles(session)
        assert {r.id for r in roles} == {"owner", "admin", "user"}
        assert await UserRepository().count(session) == 0


class TestInitRolesCli:

    @pytest.fixture(autouse=True)
    def patch_database(self, monkeypatch, session_factory):
        async def noop():
            return None

        monkeypatch.setattr(init_roles, "init_db", noop)
        monkeypatch.setattr(init_roles, "get_async_session_context", session_factory)

    async def test_creates_roles(self, capsys):
        assert await init_roles.main([]) == 0

        assert "Default roles ready (3 created)." in capsys.readouterr().out

    async def test_owner_created(self, capsys, session):
        code = await init_roles.main(["--owner-email", "founder@example.com", "--owner-password", PASSWORD])

        assert code == 0
        assert "founder@example.com is now owner" in capsys.readouterr().out

    async def test_unknown_owner(self, capsys):
        code = await init_roles.main(["--owner-email", "ghost@example.com"])

        assert code == 1
        assert "not found" in capsys.readouterr().out
