import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.pool import StaticPool

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Set test settings before importing app
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SKIP_AUTH"] = "false"
os.environ.pop("OWNER_EMAIL", None)

STRONG_PASSWORD = "Str0ng!Pass9"


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    import app.models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def rate_limiter():
    from app.services.rate_limit import RateLimiter

    return RateLimiter()


@pytest.fixture
def monitor():
    from app.services.security_monitor import SecurityMonitor

    return SecurityMonitor()


@pytest.fixture
def security_manager(rate_limiter, monitor, session_factory):
    from app.services.advanced_security import AdvancedSecurityManager

    return AdvancedSecurityManager(
        rate_limiter=rate_limiter,
        monitor=monitor,
        session_factory=session_factory,
    )


@pytest.fixture
def maintenance(session_factory):
    from app.services.maintenance import MaintenanceService

    return MaintenanceService(session_factory=session_factory)


@pytest_asyncio.fixture
async def default_roles(session):
    from app.services.permissions import PermissionService

    await PermissionService().create_default_roles(session)


@pytest.fixture
def make_user(session, default_roles):
    """Create a user with the given roles and return (user, auth headers)."""
    from app.repositories.user import UserRepository
    from app.utils.security import create_access_token

    async def _make_user(username="member", email=None, roles=("user",), password=STRONG_PASSWORD):
        repo = UserRepository()
        user = await repo.create(session, {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        user = await repo.set_roles(session, user, list(roles))
        token = create_access_token(sub=user.email, role=user.role)
        return user, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session_factory, rate_limiter, security_manager, maintenance
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with overridden dependencies (lifespan is not run by ASGITransport)."""
    from app.database import get_session
    from app.main import app
    from app.services.advanced_security import get_security_manager
    from app.services.maintenance import get_maintenance_service
    from app.services.rate_limit import get_rate_limiter

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_security_manager] = lambda: security_manager
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_maintenance_service] = lambda: maintenance

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()
