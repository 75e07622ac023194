import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import IPAlreadyBlockedError, IPNotBlockedError
from app.models.security import BlockedIP, SecurityEventRecord
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)

# 컬럼 길이 (models/security.py 와 동일)
IP_MAX_LENGTH = 64
TEXT_MAX_LENGTH = 500


def _clip(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None:
        return None
    return value[:max_length]


class SecurityRepository:
    """
    차단 IP / 보안 이벤트 저장소
    """

    # -------------------- #
    # 차단 IP
    # -------------------- #

    async def _active_blocks(self, db: AsyncSession, ip: Optional[str] = None) -> List[BlockedIP]:
        ip = _clip(ip, IP_MAX_LENGTH)
        stmt = select(BlockedIP).where(BlockedIP.unblocked_at.is_(None))
        if ip is not None:
            stmt = stmt.where(BlockedIP.ip == ip)
        result = await db.execute(stmt.order_by(BlockedIP.blocked_at.desc()))
        now = utc_now_naive()
        # 만료 시각은 duration 이 행마다 달라 파이썬에서 비교
        return [block for block in result.scalars().all() if block.is_active(now)]

    async def is_ip_blocked(self, db: AsyncSession, ip: str) -> bool:
        blocks = await self._active_blocks(db, ip)
        return len(blocks) > 0

    async def block_ip(
        self,
        db: AsyncSession,
        ip: str,
        reason: str,
        blocked_by: str,
        duration_seconds: int = 24 * 60 * 60,
    ) -> BlockedIP:
        """
        IP를 차단합니다.

        Raises:
            IPAlreadyBlockedError: 이미 활성 차단이 있는 경우
        """
        ip = _clip(ip, IP_MAX_LENGTH)
        if await self.is_ip_blocked(db, ip):
            raise IPAlreadyBlockedError(ip)

        blocked = BlockedIP(
            ip=ip,
            reason=_clip(reason, TEXT_MAX_LENGTH),
            blocked_by=_clip(blocked_by, IP_MAX_LENGTH),
            duration_seconds=duration_seconds,
        )
        try:
            db.add(blocked)
            await db.commit()
            await db.refresh(blocked)
        except Exception as e:
            await db.rollback()
            logger.error(f"IP 차단 저장 오류 (ip={ip}): {e}")
            raise

        logger.info(f"IP 차단 완료: {ip} (by={blocked_by}, reason={reason})")
        return blocked

    async def unblock_ip(self, db: AsyncSession, ip: str, unblocked_by: str) -> int:
        """
        IP 차단을 해제합니다.

        Returns:
            해제된 차단 레코드 수

        Raises:
            IPNotBlockedError: 활성 차단이 없는 경우
        """
        blocks = await self._active_blocks(db, ip)
        if not blocks:
            raise IPNotBlockedError(ip)

        now = utc_now_naive()
        try:
            for block in blocks:
                block.unblocked_at = now
                block.unblocked_by = unblocked_by
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"IP 차단 해제 오류 (ip={ip}): {e}")
            raise

        logger.info(f"IP 차단 해제 완료: {ip} (by={unblocked_by})")
        return len(blocks)

    async def get_blocked_ips(self, db: AsyncSession) -> List[BlockedIP]:
        return await self._active_blocks(db)

    # -------------------- #
    # 보안 이벤트
    # -------------------- #

    async def create_event(
        self,
        db: AsyncSession,
        type: str,
        severity: str,
        ip_address: str,
        details: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
        event_id: Optional[str] = None,
    ) -> SecurityEventRecord:
        record = SecurityEventRecord(
            type=type,
            severity=severity,
            ip_address=_clip(ip_address, IP_MAX_LENGTH),
            user_agent=_clip(user_agent, TEXT_MAX_LENGTH),
            details=details or {},
        )
        if event_id:
            record.id = event_id
        try:
            db.add(record)
            await db.commit()
            await db.refresh(record)
        except Exception:
            await db.rollback()
            raise
        return record

    async def get_events(self, db: AsyncSession, limit: int = 50, offset: int = 0) -> List[SecurityEventRecord]:
        result = await db.execute(
            select(SecurityEventRecord)
            .order_by(SecurityEventRecord.timestamp.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def resolve_event(self, db: AsyncSession, event_id: str) -> bool:
        record = await db.get(SecurityEventRecord, event_id)
        if record is None:
            return False
        try:
            record.resolved = True
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return True

    async def get_event_stats(self, db: AsyncSession) -> Dict[str, Any]:
        """
        이벤트 통계 (전체, 유형별, 심각도별, 미해결, 최근 24시간)
        """
        total = (await db.execute(select(func.count()).select_from(SecurityEventRecord))).scalar() or 0

        by_type_rows = await db.execute(
            select(SecurityEventRecord.type, func.count()).group_by(SecurityEventRecord.type)
        )
        by_severity_rows = await db.execute(
            select(SecurityEventRecord.severity, func.count()).group_by(SecurityEventRecord.severity)
        )
        unresolved = (await db.execute(
            select(func.count()).select_from(SecurityEventRecord).where(SecurityEventRecord.resolved.is_(False))
        )).scalar() or 0
        since = utc_now_naive() - timedelta(hours=24)
        last_24h = (await db.execute(
            select(func.count()).select_from(SecurityEventRecord).where(SecurityEventRecord.timestamp >= since)
        )).scalar() or 0
        blocked = len(await self._active_blocks(db))

        return {
            "totalEvents": total,
            "eventsByType": {t: c for t, c in by_type_rows.all()},
            "eventsBySeverity": {s: c for s, c in by_severity_rows.all()},
            "unresolvedEvents": unresolved,
            "last24Hours": last_24h,
            "blockedIPs": blocked,
        }
