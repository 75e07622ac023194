from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, JSON
from sqlmodel import Field, SQLModel

from app.utils.datetime import utc_now_naive


class BlockedIP(SQLModel, table=True):
    """
    차단된 IP
    - unblocked_at이 비어 있고 blocked_at + duration 이 지나지 않았으면 활성 차단
    """

    __tablename__ = "blocked_ips"
    __table_args__ = (
        Index("ix_blocked_ips_ip", "ip"),
        Index("ix_blocked_ips_blocked_at", "blocked_at"),
    )

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)

    ip: str = Field(max_length=64, nullable=False, description="차단 IP")

    reason: str = Field(max_length=500, nullable=False, description="차단 사유")

    blocked_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )

    duration_seconds: int = Field(
        default=24 * 60 * 60,
        description="차단 유지 시간(초)",
    )

    blocked_by: str = Field(max_length=64, nullable=False, description="차단 주체 (user id 또는 system)")

    unblocked_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=False)),
    )

    unblocked_by: Optional[str] = Field(default=None, max_length=64)

    @property
    def expires_at(self) -> datetime:
        return self.blocked_at + timedelta(seconds=self.duration_seconds)

    def is_active(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now_naive()
        return self.unblocked_at is None and self.expires_at > now


class SecurityEventRecord(SQLModel, table=True):
    """
    영속화된 보안 이벤트
    """

    __tablename__ = "security_events"
    __table_args__ = (
        Index("ix_security_events_ip_ts", "ip_address", "timestamp"),
        Index("ix_security_events_type_severity", "type", "severity"),
    )

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)

    type: str = Field(max_length=50, nullable=False)

    severity: str = Field(max_length=10, nullable=False)

    ip_address: str = Field(max_length=64, nullable=False)

    user_agent: Optional[str] = Field(default=None, max_length=500)

    details: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
    )

    timestamp: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False, index=True),
    )

    resolved: bool = Field(default=False)
