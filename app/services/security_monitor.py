"""
SecurityMonitor - 보안 이벤트 수집 및 알림
- 최근 이벤트를 메모리에 보관 (최대 max_events)
- IP별 15분 윈도우 내 이벤트 수가 임계치를 넘으면 알림
- log_security_event()는 메모리 기록 후 DB에도 저장 (타임아웃 적용, 실패해도 예외 없음)
"""
from __future__ import annotations

import asyncio
import logging
import random
import string
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from app.core.config import settings
from app.utils.datetime import now_ms, utc_now_naive

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("app.security")


class SecurityEventType(str, Enum):
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    INVALID_INPUT = "INVALID_INPUT"
    AUTH_FAILURE = "AUTH_FAILURE"
    DOS_ATTEMPT = "DOS_ATTEMPT"
    CAPTCHA_FAILED = "CAPTCHA_FAILED"
    HONEYPOT_TRIGGERED = "HONEYPOT_TRIGGERED"
    TIMING_ATTACK = "TIMING_ATTACK"
    USER_LOGIN = "USER_LOGIN"
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_ERROR = "LOGIN_ERROR"
    REGISTRATION_ERROR = "REGISTRATION_ERROR"
    IP_BLOCKED = "IP_BLOCKED"
    IP_UNBLOCKED = "IP_UNBLOCKED"
    BLOCKED_IP_ACCESS = "BLOCKED_IP_ACCESS"
    INVALID_METHOD = "INVALID_METHOD"
    INVALID_JSON = "INVALID_JSON"
    API_ERROR = "API_ERROR"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


DEFAULT_ALERT_THRESHOLDS: Dict[SecurityEventType, int] = {
    SecurityEventType.RATE_LIMIT_EXCEEDED: 10,
    SecurityEventType.SUSPICIOUS_ACTIVITY: 5,
    SecurityEventType.DOS_ATTEMPT: 3,
    SecurityEventType.AUTH_FAILURE: 20,
}

ALERT_WINDOW = timedelta(minutes=15)


def _new_event_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{now_ms()}-{suffix}"


@dataclass
class SecurityEvent:
    """보안 이벤트"""
    type: SecurityEventType
    severity: Severity
    client_ip: str
    details: Dict[str, Any] = field(default_factory=dict)
    user_agent: Optional[str] = None
    id: str = field(default_factory=_new_event_id)
    timestamp: datetime = field(default_factory=utc_now_naive)
    resolved: bool = False

    def to_dict(self) -> dict:
        """JSON 직렬화를 위한 딕셔너리 변환"""
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "clientIP": self.client_ip,
            "userAgent": self.user_agent,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "resolved": self.resolved,
        }


@dataclass
class SecurityAlert:
    event_type: SecurityEventType
    client_ip: str
    count: int
    triggered_at: datetime = field(default_factory=utc_now_naive)


class SecurityMonitor:
    """
    메모리 기반 보안 이벤트 모니터
    """

    def __init__(
        self,
        max_events: int = 10000,
        alert_thresholds: Optional[Dict[SecurityEventType, int]] = None,
        clock: Callable[[], datetime] = utc_now_naive,
    ):
        self._events: List[SecurityEvent] = []
        self._max_events = max_events
        self._alert_thresholds = alert_thresholds or dict(DEFAULT_ALERT_THRESHOLDS)
        self._clock = clock
        self.alerts: List[SecurityAlert] = []

    def log_event(
        self,
        type: SecurityEventType,
        severity: Severity,
        client_ip: str,
        details: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
    ) -> SecurityEvent:
        event = SecurityEvent(
            type=SecurityEventType(type),
            severity=Severity(severity),
            client_ip=client_ip,
            details=details or {},
            user_agent=user_agent,
            timestamp=self._clock(),
        )
        self._events.append(event)

        # 최근 이벤트만 유지
        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events:]

        self._check_alerts(event)

        security_logger.warning(
            f"Security Event: {event.type.value} [{event.severity.value}] "
            f"ip={event.client_ip} id={event.id} details={event.details}"
        )
        return event

    def _check_alerts(self, event: SecurityEvent) -> None:
        recent = self._recent_events(event.client_ip, ALERT_WINDOW)
        counts = Counter(e.type for e in recent)

        for event_type, count in counts.items():
            threshold = self._alert_thresholds.get(event_type)
            if threshold and count >= threshold:
                self._trigger_alert(event_type, event.client_ip, count, recent)

    def _recent_events(self, client_ip: str, window: timedelta) -> List[SecurityEvent]:
        cutoff = self._clock() - window
        return [e for e in self._events if e.client_ip == client_ip and e.timestamp > cutoff]

    def _trigger_alert(
        self,
        event_type: SecurityEventType,
        client_ip: str,
        count: int,
        events: List[SecurityEvent],
    ) -> None:
        alert = SecurityAlert(event_type=event_type, client_ip=client_ip, count=count,
                              triggered_at=self._clock())
        self.alerts.append(alert)
        security_logger.error(
            f"SECURITY ALERT: {event_type.value} ip={client_ip} count={count} "
            f"window=15m recent={[(e.type.value, e.severity.value) for e in events[-10:]]}"
        )

    def get_events(self, client_ip: Optional[str] = None, limit: int = 100) -> List[SecurityEvent]:
        events = self._events
        if client_ip:
            events = [e for e in events if e.client_ip == client_ip]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)[:limit]

    def get_stats(self) -> Dict[str, Any]:
        by_type = Counter(e.type.value for e in self._events)
        by_severity = Counter(e.severity.value for e in self._events)
        by_ip = Counter(e.client_ip for e in self._events)

        return {
            "total_events": len(self._events),
            "events_by_type": dict(by_type),
            "events_by_severity": dict(by_severity),
            "top_ips": [{"ip": ip, "count": count} for ip, count in by_ip.most_common(10)],
        }

    def resolve_event(self, event_id: str) -> bool:
        for event in self._events:
            if event.id == event_id:
                event.resolved = True
                return True
        return False

    def clear_old_events(self, older_than_hours: int = 24) -> int:
        cutoff = self._clock() - timedelta(hours=older_than_hours)
        before = len(self._events)
        self._events = [e for e in self._events if e.timestamp > cutoff]
        return before - len(self._events)

    async def run_prune_loop(self, interval_seconds: float, older_than_hours: int) -> None:
        """
        오래된 이벤트 주기적 정리
        백그라운드 태스크로 main.py lifespan에서 실행됨
        """
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                removed = self.clear_old_events(older_than_hours)
                if removed:
                    logger.info(f"오래된 보안 이벤트 정리: {removed}건")
        except asyncio.CancelledError:
            logger.info("Security monitor prune 종료")
            raise

    def __len__(self) -> int:
        return len(self._events)


# 싱글톤 인스턴스
_security_monitor: Optional[SecurityMonitor] = None


def get_security_monitor() -> SecurityMonitor:
    """SecurityMonitor 싱글톤 반환"""
    global _security_monitor
    if _security_monitor is None:
        _security_monitor = SecurityMonitor(max_events=settings.SECURITY_EVENT_BUFFER)
    return _security_monitor


async def persist_security_event(event: SecurityEvent, session_factory=None) -> None:
    """
    이벤트를 DB에 저장 (EVENT_LOG_TIMEOUT 초과 시 조용히 포기)
    """
    from app.database import get_async_session_context
    from app.repositories.security import SecurityRepository

    factory = session_factory or get_async_session_context
    repo = SecurityRepository()

    async def _persist():
        async with factory() as db:
            await repo.create_event(
                db,
                type=event.type.value,
                severity=event.severity.value,
                ip_address=event.client_ip,
                details=event.details,
                user_agent=event.user_agent,
                event_id=event.id,
            )

    try:
        await asyncio.wait_for(_persist(), timeout=settings.EVENT_LOG_TIMEOUT)
    except asyncio.TimeoutError:
        logger.debug(f"보안 이벤트 DB 저장 타임아웃: {event.id}")
    except Exception as e:
        logger.error(f"보안 이벤트 DB 저장 실패: {e}")


async def log_security_event(
    type: SecurityEventType,
    severity: Severity,
    client_ip: str,
    details: Optional[Dict[str, Any]] = None,
    user_agent: Optional[str] = None,
    monitor: Optional[SecurityMonitor] = None,
    session_factory=None,
) -> SecurityEvent:
    """
    보안 이벤트 기록 (메모리 + DB)
    """
    monitor = monitor or get_security_monitor()
    event = monitor.log_event(type, severity, client_ip, details, user_agent)
    await persist_security_event(event, session_factory)
    return event
