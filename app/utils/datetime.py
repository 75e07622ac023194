"""
DateTime Utility Module
UTC 시간 처리를 위한 유틸리티 함수들

DB에는 tz 정보 없는 UTC(naive) 값으로 저장합니다.
SQLite/PostgreSQL 모두 같은 방식으로 비교되도록 이 모듈의 함수들을 사용합니다.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """
    UTC 타임존이 포함된 현재 시간을 반환
    """
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """
    DB 저장용 naive UTC 현재 시간

    Example:
        >>> utc_now_naive().tzinfo is None
        True
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_utc(dt: datetime) -> datetime:
    """
    datetime을 UTC 타임존으로 변환
    naive datetime인 경우 UTC로 간주하여 타임존 추가
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo != timezone.utc:
        logger.debug(f"Converting {dt.tzinfo} to UTC: {dt}")
        return dt.astimezone(timezone.utc)
    return dt


def now_ms() -> int:
    """현재 시각 (epoch milliseconds)"""
    return int(time.time() * 1000)


def to_utc_string(dt: Optional[datetime]) -> Optional[str]:
    """
    datetime을 ISO 8601 UTC 문자열로 변환 (None 허용)
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def to_naive_utc(dt: datetime) -> datetime:
    """
    입력 datetime 을 DB 저장용 naive UTC 로 변환 (naive 는 UTC 로 간주)
    """
    return ensure_utc(dt).replace(tzinfo=None)
