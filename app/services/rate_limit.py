"""
RateLimiter - 고정 윈도우(fixed window) 요청 제한
identifier(예: "LOGIN:1.2.3.4") 별로 윈도우 내 요청 수를 센다.
단일 프로세스 메모리 맵 기반 (이벤트 루프 단일 스레드)
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from app.core.exceptions import SecurityGateRejection
from app.utils.datetime import now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_seconds: int


@dataclass
class RateLimitEntry:
    count: int
    reset_time: int  # epoch ms


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: int  # epoch ms
    limit: int


RATE_LIMITS: Dict[str, RateLimitRule] = {
    # 회원가입: IP당 15분에 3회
    "REGISTRATION": RateLimitRule(max_requests=3, window_seconds=15 * 60),
    # 로그인: IP당 15분에 5회
    "LOGIN": RateLimitRule(max_requests=5, window_seconds=15 * 60),
    # 비밀번호 재설정: IP당 1시간에 3회
    "PASSWORD_RESET": RateLimitRule(max_requests=3, window_seconds=60 * 60),
    # 일반 API: IP당 15분에 100회
    "GENERAL_API": RateLimitRule(max_requests=100, window_seconds=15 * 60),
    # 관리자 API: IP당 15분에 50회
    "ADMIN": RateLimitRule(max_requests=50, window_seconds=15 * 60),
}


class RateLimiter:
    """
    고정 윈도우 카운터
    - clock: epoch ms 를 돌려주는 함수 (테스트에서 교체 가능)
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._requests: Dict[str, RateLimitEntry] = {}
        self._clock = clock

    def is_allowed(self, identifier: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        window_ms = window_seconds * 1000
        entry = self._requests.get(identifier)

        if entry is None or entry.reset_time < now:
            # 새 윈도우 시작
            reset_time = now + window_ms
            self._requests[identifier] = RateLimitEntry(count=1, reset_time=reset_time)
            return RateLimitResult(True, max_requests - 1, reset_time, max_requests)

        if entry.count >= max_requests:
            return RateLimitResult(False, 0, entry.reset_time, max_requests)

        entry.count += 1
        return RateLimitResult(True, max_requests - entry.count, entry.reset_time, max_requests)

    def check(self, rule_name: str, client_ip: str) -> RateLimitResult:
        """
        RATE_LIMITS 규칙 이름과 IP로 제한 여부 확인
        """
        rule = RATE_LIMITS[rule_name]
        return self.is_allowed(f"{rule_name}:{client_ip}", rule.max_requests, rule.window_seconds)

    def cleanup(self) -> int:
        """
        만료된 엔트리 제거

        Returns:
            제거된 엔트리 수
        """
        now = self._clock()
        expired = [key for key, entry in self._requests.items() if entry.reset_time < now]
        for key in expired:
            del self._requests[key]
        if expired:
            logger.debug(f"Rate limit 엔트리 정리: {len(expired)}개")
        return len(expired)

    async def run_cleanup_loop(self, interval_seconds: float) -> None:
        """
        주기적 정리 루프
        백그라운드 태스크로 main.py lifespan에서 실행됨
        """
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                self.cleanup()
        except asyncio.CancelledError:
            logger.info("Rate limiter cleanup 종료")
            raise

    def reset(self) -> None:
        self._requests.clear()

    def __len__(self) -> int:
        return len(self._requests)


def get_client_ip(request: Request) -> str:
    """
    클라이언트 IP 추출
    우선순위: cf-connecting-ip > x-real-ip > x-forwarded-for 첫 번째 값 > "unknown"
    """
    headers = request.headers
    cf_connecting_ip = headers.get("cf-connecting-ip")
    if cf_connecting_ip:
        return cf_connecting_ip.strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return "unknown"


def rate_limit_headers(result: RateLimitResult, now: Optional[int] = None) -> Dict[str, str]:
    now = now if now is not None else now_ms()
    retry_after = max(0, math.ceil((result.reset_time - now) / 1000))
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
        "Retry-After": str(retry_after),
    }


def rate_limit_content(result: RateLimitResult) -> dict:
    return {
        "error": "Too many requests",
        "message": "Rate limit exceeded. Please try again later.",
        "remaining": result.remaining,
        "resetTime": result.reset_time,
    }


def create_rate_limit_response(result: RateLimitResult) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=rate_limit_content(result),
        headers=rate_limit_headers(result),
    )


# 싱글톤 인스턴스
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """RateLimiter 싱글톤 반환"""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


def rate_limited(rule_name: str = "GENERAL_API"):
    """
    Rate limit 만 적용하는 FastAPI 의존성 팩토리
    (전체 보안 게이트가 필요 없는 조회성 엔드포인트용)

    Usage:
        @router.get("/", dependencies=[Depends(rate_limited("GENERAL_API"))])
    """
    async def _dependency(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> RateLimitResult:
        result = limiter.check(rule_name, get_client_ip(request))
        if not result.allowed:
            raise SecurityGateRejection(
                status_code=429,
                content=rate_limit_content(result),
                headers=rate_limit_headers(result),
            )
        return result

    return _dependency
