"""
Integration tests for /api/admin/security endpoints.
"""

from datetime import timedelta

import pytest
import pytest_asyncio

from app.models.security import BlockedIP
from app.repositories.security import SecurityRepository
from app.services.security_monitor import SecurityEventType


@pytest_asyncio.fixture
async def admin_headers(make_user):
    _, headers = await make_user("boss", roles=["admin"])
    return headers


class TestAccessControl:

    async def test_requires_login(self, client):
        response = await client.get("/api/admin/security/blocked-ips")

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    async def test_requires_permission(self, client, make_user):
        _, headers = await make_user("member")

        response = await client.post(
            "/api/admin/security/block-ip", json={"ip": "1.2.3.4", "reason": "spam"}, headers=headers
        )

        assert response.status_code == 403
        assert response.json() == {"detail": "Forbidden"}

    async def test_custom_role_with_view_permission(self, client, make_user, session):
        from app.services.permissions import PermissionService

        role = await PermissionService().create_role(session, "Auditor", permissions=["security.view"])
        _, headers = await make_user("auditor", roles=[role.id])

        allowed = await client.get("/api/admin/security/events", headers=headers)
        denied = await client.post(
            "/api/admin/security/block-ip", json={"ip": "1.2.3.4", "reason": "spam"}, headers=headers
        )

        assert allowed.status_code == 200
        assert denied.status_code == 403


class TestBlockIp:

    async def test_block_then_list(self, client, admin_headers, security_manager):
        response = await client.post(
            "/api/admin/security/block-ip",
            json={"ip": "1.2.3.4", "reason": "spam", "durationSeconds": 3600},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "IP 1.2.3.4 has been blocked successfully"

        listed = await client.get("/api/admin/security/blocked-ips", headers=admin_headers)
        blocks = listed.json()
        assert len(blocks) == 1
        assert blocks[0]["ip"] == "1.2.3.4"
        assert blocks[0]["reason"] == "spam"

        assert await security_manager.is_ip_blocked("1.2.3.4") is True
        assert SecurityEventType.IP_BLOCKED in [e.type for e in security_manager.monitor.get_events()]

    async def test_block_twice_conflicts(self, client, admin_headers):
        body = {"ip": "1.2.3.4", "reason": "spam"}
        await client.post("/api/admin/security/block-ip", json=body, headers=admin_headers)

        response = await client.post("/api/admin/security/block-ip", json=body, headers=admin_headers)

        assert response.status_code == 409
        assert response.json() == {"error": "IP is already blocked"}

    @pytest.mark.parametrize(
        "body,error",
        [
            ({"ip": "1.2.3.4"}, "IP and reason are required"),
            ({"reason": "spam"}, "IP and reason are required"),
            ({"ip": "999.1.1.1", "reason": "spam"}, "Invalid IP address format"),
            ({"ip": "::1", "reason": "spam"}, "Invalid IP address format"),
        ],
    )
    async def test_block_invalid(self, client, admin_headers, body, error):
        response = await client.post("/api/admin/security/block-ip", json=body, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == error

    async def test_expired_block_not_listed(self, client, admin_headers, session):
        expired = BlockedIP(ip="5.5.5.5", reason="old", blocked_by="system", duration_seconds=60)
        expired.blocked_at = expired.blocked_at - timedelta(minutes=5)
        session.add(expired)
        await session.commit()

        response = await client.get("/api/admin/security/blocked-ips", headers=admin_headers)

        assert response.json() == []


class TestUnblockIp:

    async def test_unblock(self, client, admin_headers, security_manager):
        await client.post(
            "/api/admin/security/block-ip", json={"ip": "1.2.3.4", "reason": "spam"}, headers=admin_headers
        )

        response = await client.post(
            "/api/admin/security/unblock-ip", json={"ip": "1.2.3.4"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "IP 1.2.3.4 has been unblocked successfully"
        assert await security_manager.is_ip_blocked("1.2.3.4") is False

    async def test_unblock_resets_auto_block_state(self, client, admin_headers, security_manager):
        for _ in range(5):
            await security_manager.mark_suspicious_activity("9.9.9.9")
        assert security_manager.get_security_stats()["blockedIPs"] == 1

        response = await client.post(
            "/api/admin/security/unblock-ip", json={"ip": "9.9.9.9"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert security_manager.suspicious_count("9.9.9.9") == 0
        assert security_manager.get_security_stats()["blockedIPs"] == 0

    async def test_unblock_not_blocked(self, client, admin_headers):
        response = await client.post(
            "/api/admin/security/unblock-ip", json={"ip": "1.2.3.4"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "IP is not blocked"}

    async def test_unblock_requires_ip(self, client, admin_headers):
        response = await client.post("/api/admin/security/unblock-ip", json={}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "IP is required"


class TestEvents:

    async def test_events_listed_newest_first(self, client, admin_headers, session):
        repo = SecurityRepository()
        await repo.create_event(session, type="INVALID_INPUT", severity="LOW", ip_address="1.1.1.1")
        await repo.create_event(session, type="AUTH_FAILURE", severity="MEDIUM", ip_address="2.2.2.2")

        response = await client.get("/api/admin/security/events?limit=1", headers=admin_headers)

        data = response.json()
        assert response.status_code == 200
        assert data["limit"] == 1
        assert len(data["events"]) == 1

    async def test_resolve_event(self, client, admin_headers, session):
        record = await SecurityRepository().create_event(
            session, type="INVALID_INPUT", severity="LOW", ip_address="1.1.1.1"
        )

        response = await client.post(
            f"/api/admin/security/events/{record.id}/resolve", headers=admin_headers
        )

        assert response.status_code == 200
        await session.refresh(record)
        assert record.resolved is True

    async def test_resolve_unknown_event(self, client, admin_headers):
        response = await client.post("/api/admin/security/events/missing/resolve", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "Event not found"

    async def test_stats(self, client, admin_headers, security_manager):
        await client.post(
            "/api/admin/security/block-ip", json={"ip": "1.2.3.4", "reason": "spam"}, headers=admin_headers
        )

        response = await client.get("/api/admin/security/stats", headers=admin_headers)

        data = response.json()
        assert data["store"]["blockedIPs"] == 1
        assert data["store"]["eventsByType"]["IP_BLOCKED"] == 1
        assert data["monitor"]["total_events"] == 1
        assert set(data["manager"]) == {"blockedIPs", "suspiciousIPs", "activeSessions"}
