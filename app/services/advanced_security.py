"""
AdvancedSecurityManager - 요청 단위 보안 게이트
비즈니스 로직에 도달하기 전에 아래 검사를 순서대로 수행하고,
처음 실패한 검사에서 SecurityGateRejection 을 발생시킨다.

    1. 차단 IP            → 403
    2. 허용 메서드         → 405
    3. Rate limit         → 429
    4. 바디 크기 (POST/PUT/PATCH)  → 413
    5. 의심 패턴          → 400
    6. JSON 파싱          → 400
    7. Honeypot (옵션)     → 400
    8. 작성 시간 (옵션)    → 400
    9. 인증 정보 (옵션)    → 401
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, Request
from pydantic import BaseModel, Field
from starlette.responses import Response

from app.core.config import settings
from app.core.exceptions import SecurityGateRejection
from app.repositories.security import SecurityRepository
from app.services.rate_limit import (RATE_LIMITS, RateLimiter, get_client_ip,
                                     get_rate_limiter, rate_limit_content,
                                     rate_limit_headers)
from app.services.security_monitor import (SecurityEvent, SecurityEventType,
                                           SecurityMonitor, Severity,
                                           get_security_monitor,
                                           log_security_event)
from app.utils.datetime import now_ms, utc_now_naive
from app.utils.validation import (body_size, detect_suspicious_activity,
                                  validate_request_body_size)

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
        "style-src 'self' 'unsafe-inline'; img-src 'self' data: https:; "
        "font-src 'self' data:; connect-src 'self' https:; frame-ancestors 'none'; "
        "base-uri 'self'; form-action 'self';"
    ),
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Embedder-Policy": "require-corp",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityConfig(BaseModel):
    """
    엔드포인트별 보안 게이트 설정
    """
    require_captcha: bool = False  # reCAPTCHA 검증은 각 라우트에서 처리
    require_honeypot: bool = False
    require_timing: bool = False
    max_body_size: int = Field(default_factory=lambda: settings.MAX_BODY_SIZE)
    rate_limit_type: str = "GENERAL_API"
    allowed_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE"])
    require_auth: bool = False
    require_admin: bool = False


@dataclass
class RequestContext:
    """게이트를 통과한 요청 정보"""
    client_ip: str
    user_agent: str
    fingerprint: str
    start_time: int
    headers: Dict[str, str]
    raw_body: str = ""
    body: Any = None


@dataclass
class SuspiciousActivity:
    count: int = 0
    last_seen: datetime = field(default_factory=utc_now_naive)


def browser_fingerprint(request: Request, client_ip: Optional[str] = None) -> str:
    """
    요청 헤더 기반 브라우저 fingerprint (sha256 앞 32자)
    """
    headers = request.headers
    raw = "|".join([
        headers.get("user-agent", ""),
        headers.get("accept-language", ""),
        headers.get("accept-encoding", ""),
        client_ip or get_client_ip(request),
    ])
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


class AdvancedSecurityManager:
    """
    보안 게이트 매니저
    - rate_limiter / monitor / session_factory 는 테스트에서 교체 가능
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        monitor: Optional[SecurityMonitor] = None,
        session_factory: Optional[Callable] = None,
        repository: Optional[SecurityRepository] = None,
    ):
        self.rate_limiter = rate_limiter or get_rate_limiter()
        self.monitor = monitor or get_security_monitor()
        self.session_factory = session_factory
        self.repository = repository or SecurityRepository()

        # 자동 차단 IP → 만료 시각
        self._blocked_ips: Dict[str, datetime] = {}
        self._suspicious_ips: Dict[str, SuspiciousActivity] = {}
        self._user_sessions: Dict[str, Dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # 공통
    # ------------------------------------------------------------------
    def _session(self):
        if self.session_factory is not None:
            return self.session_factory()
        from app.database import get_async_session_context
        return get_async_session_context()

    async def log_event(
        self,
        type: SecurityEventType,
        severity: Severity,
        client_ip: str,
        details: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
    ) -> SecurityEvent:
        return await log_security_event(
            type, severity, client_ip, details, user_agent,
            monitor=self.monitor,
            session_factory=self.session_factory,
        )

    # ------------------------------------------------------------------
    # IP 차단
    # ------------------------------------------------------------------
    async def is_ip_blocked(self, ip: str) -> bool:
        """
        차단 여부 조회 (IP_CHECK_TIMEOUT 초과/오류 시 허용)
        """
        async def _lookup() -> bool:
            async with self._session() as db:
                return await self.repository.is_ip_blocked(db, ip)

        try:
            return await asyncio.wait_for(_lookup(), timeout=settings.IP_CHECK_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"IP 차단 조회 타임아웃, 요청 허용: {ip}")
            return False
        except Exception as e:
            logger.warning(f"IP 차단 조회 실패, 요청 허용: {ip} ({e})")
            return False

    async def block_ip(self, ip: str, reason: str, duration_seconds: Optional[int] = None) -> bool:
        duration = settings.AUTO_BLOCK_DURATION_SECONDS if duration_seconds is None else duration_seconds
        try:
            async with self._session() as db:
                await self.repository.block_ip(db, ip, reason, "system", duration)
        except Exception as e:
            logger.error(f"IP 차단 오류 ({ip}): {e}")
            return False

        self._blocked_ips[ip] = utc_now_naive() + timedelta(seconds=duration)
        await self.log_event(SecurityEventType.IP_BLOCKED, Severity.HIGH, ip,
                             {"reason": reason, "duration": duration})
        return True

    async def unblock_ip(self, ip: str) -> bool:
        try:
            async with self._session() as db:
                await self.repository.unblock_ip(db, ip, "system")
        except Exception as e:
            logger.error(f"IP 차단 해제 오류 ({ip}): {e}")
            return False

        self.forget_ip(ip)
        await self.log_event(SecurityEventType.IP_UNBLOCKED, Severity.MEDIUM, ip, {})
        return True

    def forget_ip(self, ip: str) -> None:
        """
        자동 차단 상태 및 의심 카운터 초기화 (관리자 해제 시)
        """
        self._blocked_ips.pop(ip, None)
        self._suspicious_ips.pop(ip, None)

    def cleanup_suspicious(self, older_than_seconds: int, now: Optional[datetime] = None) -> int:
        """
        오래된 의심 카운터, 만료된 자동 차단, 비활성 세션 정리

        Returns:
            제거된 의심 IP 수
        """
        now = now or utc_now_naive()
        cutoff = now - timedelta(seconds=older_than_seconds)

        stale = [ip for ip, activity in self._suspicious_ips.items() if activity.last_seen < cutoff]
        for ip in stale:
            del self._suspicious_ips[ip]

        for ip in [ip for ip, expires_at in self._blocked_ips.items() if expires_at <= now]:
            del self._blocked_ips[ip]

        idle = [sid for sid, info in self._user_sessions.items() if info["last_activity"] < cutoff]
        for session_id in idle:
            del self._user_sessions[session_id]

        return len(stale)

    async def run_cleanup_loop(self, interval_seconds: float, older_than_seconds: int) -> None:
        """
        의심 활동 상태 주기적 정리
        백그라운드 태스크로 main.py lifespan에서 실행됨
        """
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                removed = self.cleanup_suspicious(older_than_seconds)
                if removed:
                    logger.info(f"오래된 의심 IP 정리: {removed}건")
        except asyncio.CancelledError:
            logger.info("Security manager cleanup 종료")
            raise

    async def mark_suspicious_activity(self, ip: str) -> int:
        """
        의심 활동 카운트 증가, AUTO_BLOCK_THRESHOLD 도달 시 자동 차단

        Returns:
            현재 누적 카운트
        """
        activity = self._suspicious_ips.setdefault(ip, SuspiciousActivity())
        activity.count += 1
        activity.last_seen = utc_now_naive()

        # 만료된 차단 이후 재범이면 다시 차단
        if activity.count >= settings.AUTO_BLOCK_THRESHOLD and not await self.is_ip_blocked(ip):
            await self.block_ip(ip, "Multiple suspicious activities detected")

        return activity.count

    def suspicious_count(self, ip: str) -> int:
        activity = self._suspicious_ips.get(ip)
        return activity.count if activity else 0

    # ------------------------------------------------------------------
    # 요청 검증
    # ------------------------------------------------------------------
    def _reject(self, status_code: int, error: str, headers: Optional[Dict[str, str]] = None):
        return SecurityGateRejection(status_code=status_code, content={"error": error}, headers=headers)

    async def validate_request(self, request: Request, config: Optional[SecurityConfig] = None) -> RequestContext:
        config = config or SecurityConfig()
        client_ip = get_client_ip(request)
        user_agent = request.headers.get("user-agent", "unknown")
        method = request.method.upper()

        # 1. 차단 IP
        if await self.is_ip_blocked(client_ip):
            await self.log_event(SecurityEventType.BLOCKED_IP_ACCESS, Severity.HIGH, client_ip,
                                 {"userAgent": user_agent}, user_agent)
            raise self._reject(403, "Access denied")

        # 2. 메서드
        allowed_methods = [m.upper() for m in config.allowed_methods]
        if method not in allowed_methods:
            await self.log_event(SecurityEventType.INVALID_METHOD, Severity.MEDIUM, client_ip,
                                 {"method": method, "allowedMethods": allowed_methods}, user_agent)
            raise self._reject(405, "Method not allowed")

        # 3. Rate limit
        rule = RATE_LIMITS[config.rate_limit_type]
        result = self.rate_limiter.is_allowed(
            f"{config.rate_limit_type}:{client_ip}", rule.max_requests, rule.window_seconds
        )
        if not result.allowed:
            await self.mark_suspicious_activity(client_ip)
            await self.log_event(SecurityEventType.RATE_LIMIT_EXCEEDED, Severity.HIGH, client_ip,
                                 {"rateLimitType": config.rate_limit_type, "remaining": result.remaining},
                                 user_agent)
            raise SecurityGateRejection(
                status_code=429,
                content=rate_limit_content(result),
                headers=rate_limit_headers(result),
            )

        raw_body = ""
        body: Any = None
        if method in BODY_METHODS:
            raw_body = (await request.body()).decode("utf-8", errors="replace")

            # 4. 바디 크기
            size_check = validate_request_body_size(raw_body, config.max_body_size)
            if not size_check.is_valid:
                await self.mark_suspicious_activity(client_ip)
                await self.log_event(SecurityEventType.DOS_ATTEMPT, Severity.CRITICAL, client_ip,
                                     {"bodySize": body_size(raw_body), "maxSize": config.max_body_size},
                                     user_agent)
                raise self._reject(413, size_check.errors[0])

            # 5. 의심 패턴
            if detect_suspicious_activity(raw_body):
                await self.mark_suspicious_activity(client_ip)
                await self.log_event(SecurityEventType.SUSPICIOUS_ACTIVITY, Severity.HIGH, client_ip,
                                     {"bodyPreview": raw_body[:100]}, user_agent)
                raise self._reject(400, "Suspicious activity detected")

            # 6. JSON 파싱 (빈 바디는 body=None)
            if raw_body.strip():
                try:
                    body = json.loads(raw_body)
                except ValueError as e:
                    await self.log_event(SecurityEventType.INVALID_JSON, Severity.MEDIUM, client_ip,
                                         {"error": str(e)}, user_agent)
                    raise self._reject(400, "Invalid JSON format")

            # 7. Honeypot
            if config.require_honeypot and isinstance(body, dict):
                for key, value in body.items():
                    if not key.startswith("hp_"):
                        continue
                    if value is not None and str(value).strip() != "":
                        await self.mark_suspicious_activity(client_ip)
                        await self.log_event(SecurityEventType.HONEYPOT_TRIGGERED, Severity.HIGH,
                                             client_ip, {"field": key}, user_agent)
                        raise self._reject(400, "Invalid form submission")

            # 8. 작성 시간
            if config.require_timing:
                form_start = body.get("formStartTime") if isinstance(body, dict) else None
                valid_start = isinstance(form_start, (int, float)) and not isinstance(form_start, bool)
                elapsed = now_ms() - form_start if valid_start else None
                if elapsed is None or elapsed < settings.MIN_FORM_FILL_MS:
                    await self.mark_suspicious_activity(client_ip)
                    await self.log_event(SecurityEventType.TIMING_ATTACK, Severity.MEDIUM, client_ip,
                                         {"formStartTime": form_start if valid_start else None,
                                          "elapsed": elapsed}, user_agent)
                    raise self._reject(400, "Form submitted too quickly")

        # 9. 인증 정보
        if config.require_auth or config.require_admin:
            has_header = bool(request.headers.get("authorization"))
            has_cookie = bool(request.cookies.get(settings.SESSION_COOKIE_NAME))
            if not has_header and not has_cookie:
                await self.log_event(SecurityEventType.UNAUTHORIZED_ACCESS, Severity.MEDIUM, client_ip,
                                     {"requireAuth": config.require_auth,
                                      "requireAdmin": config.require_admin}, user_agent)
                raise self._reject(401, "Authentication required")

        return RequestContext(
            client_ip=client_ip,
            user_agent=user_agent,
            fingerprint=browser_fingerprint(request, client_ip),
            start_time=now_ms(),
            headers=dict(request.headers),
            raw_body=raw_body,
            body=body,
        )

    # ------------------------------------------------------------------
    # 응답 헤더 / 세션 / 통계
    # ------------------------------------------------------------------
    def apply_security_headers(self, response: Response) -> Response:
        for key, value in SECURITY_HEADERS.items():
            response.headers[key] = value
        return response

    def record_session(self, session_id: str, user_id: str) -> None:
        self._user_sessions[session_id] = {"user_id": user_id, "last_activity": utc_now_naive()}

    def end_session(self, session_id: str) -> None:
        self._user_sessions.pop(session_id, None)

    def get_security_stats(self) -> Dict[str, int]:
        now = utc_now_naive()
        return {
            "blockedIPs": sum(1 for expires_at in self._blocked_ips.values() if expires_at > now),
            "suspiciousIPs": len(self._suspicious_ips),
            "activeSessions": len(self._user_sessions),
        }


# 싱글톤 인스턴스
_security_manager: Optional[AdvancedSecurityManager] = None


def get_security_manager() -> AdvancedSecurityManager:
    """AdvancedSecurityManager 싱글톤 반환 (FastAPI Depends용)"""
    global _security_manager
    if _security_manager is None:
        _security_manager = AdvancedSecurityManager()
    return _security_manager


def protected(config: Optional[SecurityConfig] = None, **options):
    """
    보안 게이트 의존성 팩토리

    Usage:
        @router.post("/register")
        async def register(ctx: RequestContext = Depends(protected(rate_limit_type="REGISTRATION",
                                                                   require_honeypot=True))):
            ...

    통과한 RequestContext 를 돌려주며, 핸들러에서 발생한 예외는
    전역 예외 핸들러에서 API_ERROR 이벤트로 기록된다.
    """
    gate_config = config or SecurityConfig(**options)

    async def _dependency(
        request: Request,
        manager: AdvancedSecurityManager = Depends(get_security_manager),
    ) -> RequestContext:
        request.state.security_manager = manager
        context = await manager.validate_request(request, gate_config)
        request.state.security_context = context
        return context

    return _dependency
