"""
Integration tests for /api/auth endpoints (register, login, refresh, me, logout).
"""

import pytest

from app.core.config import settings
from app.services.security_monitor import SecurityEventType
from app.utils.datetime import now_ms
from app.utils.security import decode_token

STRONG_PASSWORD = "Str0ng!Pass9"


def register_body(**overrides):
    body = {
        "username": "player_one",
        "email": "player@example.com",
        "password": STRONG_PASSWORD,
        "confirmPassword": STRONG_PASSWORD,
        "formStartTime": now_ms() - 5000,
        "hp_website": "",
    }
    body.update(overrides)
    return body


def event_types(manager):
    return [e.type for e in manager.monitor.get_events()]


class TestRegister:

    async def test_register_success(self, client, security_manager, default_roles):
        response = await client.post("/api/auth/register", json=register_body())

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "player_one"
        assert data["email"] == "player@example.com"
        assert data["role"] == "user"
        assert data["roles"] == ["user"]
        assert "password_hash" not in data
        assert SecurityEventType.USER_REGISTERED in event_types(security_manager)

    async def test_register_security_headers(self, client, default_roles):
        response = await client.post("/api/auth/register", json=register_body())

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    async def test_validation_errors_collected(self, client, security_manager):
        response = await client.post(
            "/api/auth/register",
            json=register_body(username="ab", password="weakpass", confirmPassword="other"),
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "Validation failed"
        assert "username must be at least 3 characters long" in detail["errors"]
        assert "password must be at least 10 characters long" in detail["errors"]
        assert detail["errors"][-1] == "Passwords do not match"
        assert SecurityEventType.REGISTRATION_ERROR in event_types(security_manager)

    async def test_duplicate_email(self, client, make_user):
        await make_user("someone", email="player@example.com")

        response = await client.post("/api/auth/register", json=register_body())

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "Email already in use"

    async def test_duplicate_username(self, client, make_user):
        await make_user("player_one", email="other@example.com")

        response = await client.post("/api/auth/register", json=register_body())

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "Username already in use"

    async def test_too_fast_submission(self, client):
        response = await client.post(
            "/api/auth/register", json=register_body(formStartTime=now_ms() - 100)
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Form submitted too quickly"}

    async def test_honeypot(self, client):
        response = await client.post(
            "/api/auth/register", json=register_body(hp_website="http://spam.example")
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid form submission"}

    async def test_get_not_allowed(self, client):
        response = await client.get("/api/auth/register")

        assert response.status_code == 405

    async def test_rate_limited_after_three(self, client, default_roles):
        for i in range(3):
            await client.post(
                "/api/auth/register",
                json=register_body(username=f"player_{i}", email=f"p{i}@example.com"),
            )

        response = await client.post(
            "/api/auth/register", json=register_body(username="player_9", email="p9@example.com")
        )

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Limit"] == "3"


class TestLogin:

    async def test_login_success(self, client, make_user, security_manager):
        user, _ = await make_user("member")

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )

        assert response.status_code == 200
        tokens = response.json()
        assert tokens["token_type"] == "bearer"
        assert decode_token(tokens["access_token"])["scope"] == "access"
        assert decode_token(tokens["refresh_token"])["scope"] == "refresh"
        assert response.cookies.get(settings.SESSION_COOKIE_NAME) == tokens["access_token"]
        assert security_manager.get_security_stats()["activeSessions"] == 1
        assert SecurityEventType.USER_LOGIN in event_types(security_manager)

    async def test_wrong_password(self, client, make_user, security_manager):
        user, _ = await make_user("member")

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": "Wr0ng!Passw"}
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "Invalid email or password"
        assert SecurityEventType.AUTH_FAILURE in event_types(security_manager)

    async def test_inactive_user_cannot_login(self, client, make_user, session):
        user, _ = await make_user("member")
        user.is_active = False
        await session.commit()

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )

        assert response.status_code == 401

    async def test_missing_fields(self, client):
        response = await client.post("/api/auth/login", json={"email": "a@b.co"})

        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["password"]

    async def test_login_rate_limit(self, client, make_user):
        user, _ = await make_user("member")
        for _ in range(5):
            await client.post("/api/auth/login", json={"email": user.email, "password": "Wr0ng!Passw"})

        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )

        assert response.status_code == 429


class TestSession:

    async def test_me_with_bearer(self, client, make_user):
        user, headers = await make_user("member")

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["user_id"] == user.user_id

    async def test_me_with_cookie(self, client, make_user):
        user, _ = await make_user("member")
        login = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )
        token = login.json()["access_token"]

        response = await client.get(
            "/api/auth/me", headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}
        )

        assert response.status_code == 200
        assert response.json()["email"] == user.email

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}])
    async def test_me_unauthenticated(self, client, headers):
        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_refresh_token_not_accepted_as_access(self, client, make_user):
        user, _ = await make_user("member")
        login = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )

        response = await client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {login.json()['refresh_token']}"},
        )

        assert response.status_code == 401

    async def test_refresh(self, client, make_user):
        user, _ = await make_user("member")
        login = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )

        response = await client.post(
            "/api/auth/refresh", json={"refresh_token": login.json()["refresh_token"]}
        )

        assert response.status_code == 200
        assert decode_token(response.json()["access_token"])["sub"] == user.email

    async def test_refresh_rejects_access_token(self, client, make_user):
        _, headers = await make_user("member")
        access = headers["Authorization"].split(" ", 1)[1]

        response = await client.post("/api/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid refresh token"

    async def test_logout_ends_session(self, client, make_user, security_manager):
        user, _ = await make_user("member")
        login = await client.post(
            "/api/auth/login", json={"email": user.email, "password": STRONG_PASSWORD}
        )
        assert security_manager.get_security_stats()["activeSessions"] == 1

        response = await client.post(
            "/api/auth/logout",
            headers={"Authorization": f"Bearer {login.json()['access_token']}"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out"}
        assert security_manager.get_security_stats()["activeSessions"] == 0
