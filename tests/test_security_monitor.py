"""
Unit tests for the in-memory security monitor and event persistence.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from app.models.security import SecurityEventRecord
from app.repositories.security import SecurityRepository
from app.services.security_monitor import (SecurityEventType, SecurityMonitor,
                                           Severity, log_security_event,
                                           persist_security_event)


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monitor(clock):
    return SecurityMonitor(clock=clock)


class TestLogEvent:

    def test_event_fields(self, monitor, clock):
        event = monitor.log_event(
            SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1", {"field": "email"}, "pytest"
        )

        assert event.timestamp == clock.now
        assert event.resolved is False
        assert event.id.split("-")[0].isdigit()
        assert event.to_dict()["clientIP"] == "1.1.1.1"
        assert event.to_dict()["userAgent"] == "pytest"
        assert len(monitor) == 1

    def test_accepts_plain_strings(self, monitor):
        event = monitor.log_event("AUTH_FAILURE", "MEDIUM", "1.1.1.1")

        assert event.type is SecurityEventType.AUTH_FAILURE
        assert event.severity is Severity.MEDIUM

    def test_buffer_keeps_most_recent(self, clock):
        monitor = SecurityMonitor(max_events=3, clock=clock)
        for i in range(5):
            monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, f"10.0.0.{i}")

        assert len(monitor) == 3
        assert {e.client_ip for e in monitor.get_events()} == {"10.0.0.2", "10.0.0.3", "10.0.0.4"}


class TestAlerts:

    def test_alert_at_threshold(self, monitor):
        for _ in range(4):
            monitor.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.MEDIUM, "6.6.6.6")
        assert monitor.alerts == []

        monitor.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.MEDIUM, "6.6.6.6")

        assert len(monitor.alerts) == 1
        assert monitor.alerts[0].event_type is SecurityEventType.SUSPICIOUS_ACTIVITY
        assert monitor.alerts[0].count == 5

    def test_alert_repeats_after_threshold(self, monitor):
        for _ in range(4):
            monitor.log_event(SecurityEventType.DOS_ATTEMPT, Severity.HIGH, "6.6.6.6")

        assert len(monitor.alerts) == 2

    def test_other_ips_not_counted(self, monitor):
        for i in range(5):
            monitor.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.MEDIUM, f"7.7.7.{i}")

        assert monitor.alerts == []

    def test_events_outside_window_ignored(self, monitor, clock):
        for _ in range(4):
            monitor.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.MEDIUM, "6.6.6.6")
        clock.now += timedelta(minutes=16)

        monitor.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.MEDIUM, "6.6.6.6")

        assert monitor.alerts == []

    def test_untracked_type_never_alerts(self, monitor):
        for _ in range(50):
            monitor.log_event(SecurityEventType.USER_LOGIN, Severity.LOW, "6.6.6.6")

        assert monitor.alerts == []


class TestQueries:

    def test_get_events_newest_first_and_filtered(self, monitor, clock):
        monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")
        clock.now += timedelta(seconds=1)
        second = monitor.log_event(SecurityEventType.INVALID_JSON, Severity.MEDIUM, "2.2.2.2")
        clock.now += timedelta(seconds=1)
        third = monitor.log_event(SecurityEventType.AUTH_FAILURE, Severity.MEDIUM, "1.1.1.1")

        assert monitor.get_events()[0] is third
        assert monitor.get_events(limit=2)[1] is second
        assert [e.client_ip for e in monitor.get_events(client_ip="1.1.1.1")] == ["1.1.1.1", "1.1.1.1"]

    def test_stats(self, monitor):
        monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")
        monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")
        monitor.log_event(SecurityEventType.AUTH_FAILURE, Severity.MEDIUM, "2.2.2.2")

        stats = monitor.get_stats()

        assert stats["total_events"] == 3
        assert stats["events_by_type"] == {"INVALID_INPUT": 2, "AUTH_FAILURE": 1}
        assert stats["events_by_severity"] == {"LOW": 2, "MEDIUM": 1}
        assert stats["top_ips"][0] == {"ip": "1.1.1.1", "count": 2}

    def test_resolve_event(self, monitor):
        event = monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")

        assert monitor.resolve_event(event.id) is True
        assert event.resolved is True
        assert monitor.resolve_event("missing") is False

    def test_clear_old_events(self, monitor, clock):
        monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")
        clock.now += timedelta(hours=23)
        monitor.log_event(SecurityEventType.INVALID_INPUT, Severity.LOW, "1.1.1.1")
        clock.now += timedelta(hours=2)

        removed = monitor.clear_old_events(24)

        assert removed == 1
        assert len(monitor) == 1


class TestPersistence:

    async def test_log_security_event_persists(self, session_factory):
        monitor = SecurityMonitor()

        event = await log_security_event(
            SecurityEventType.IP_BLOCKED,
            Severity.HIGH,
            "8.8.8.8",
            {"reason": "manual"},
            monitor=monitor,
            session_factory=session_factory,
        )

        async with session_factory() as db:
            record = await db.get(SecurityEventRecord, event.id)
        assert record is not None
        assert record.type == "IP_BLOCKED"
        assert record.details == {"reason": "manual"}
        assert len(monitor) == 1

    async def test_long_values_are_clipped_to_columns(self, session_factory):
        long_ip = "1" * 100
        event = await log_security_event(
            SecurityEventType.SUSPICIOUS_ACTIVITY,
            Severity.HIGH,
            long_ip,
            {},
            "A" * 2000,
            monitor=SecurityMonitor(),
            session_factory=session_factory,
        )

        async with session_factory() as db:
            record = await db.get(SecurityEventRecord, event.id)
            assert len(record.ip_address) == 64
            assert len(record.user_agent) == 500

            repo = SecurityRepository()
            blocked = await repo.block_ip(db, long_ip, "r" * 900, "system")
            assert len(blocked.ip) == 64
            assert len(blocked.reason) == 500
            assert await repo.is_ip_blocked(db, long_ip) is True
            assert await repo.unblock_ip(db, long_ip, "admin-1") == 1

    async def test_persist_failure_is_swallowed(self):
        @asynccontextmanager
        async def broken_factory():
            raise RuntimeError("db down")
            yield  # pragma: no cover

        event = SecurityMonitor().log_event(SecurityEventType.API_ERROR, Severity.HIGH, "1.1.1.1")

        # 예외가 호출자에게 전파되지 않아야 함
        await persist_security_event(event, broken_factory)

    async def test_persist_timeout_is_swallowed(self, monkeypatch, session_factory):
        from app.core.config import settings

        monkeypatch.setattr(settings, "EVENT_LOG_TIMEOUT", 0.01)

        async def slow_create_event(self, db, **kwargs):
            await asyncio.sleep(1)

        monkeypatch.setattr(SecurityRepository, "create_event", slow_create_event)
        event = SecurityMonitor().log_event(SecurityEventType.API_ERROR, Severity.HIGH, "1.1.1.1")

        await persist_security_event(event, session_factory)

        async with session_factory() as db:
            rows = (await db.execute(select(SecurityEventRecord))).scalars().all()
        assert rows == []
