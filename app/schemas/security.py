from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BlockIPRequest(BaseModel):
    ip: Optional[str] = None
    reason: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, gt=0, alias="durationSeconds")


class UnblockIPRequest(BaseModel):
    ip: Optional[str] = None


class BlockedIPResponse(BaseModel):
    id: str
    ip: str
    reason: str
    blocked_at: datetime
    expires_at: datetime
    blocked_by: str

    class Config:
        from_attributes = True


class SecurityEventResponse(BaseModel):
    id: str
    type: str
    severity: str
    ip_address: str
    user_agent: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    resolved: bool = False

    class Config:
        from_attributes = True


class SecurityEventListResponse(BaseModel):
    events: List[SecurityEventResponse]
    limit: int
    offset: int


class SecurityStatsResponse(BaseModel):
    store: Dict[str, Any]
    monitor: Dict[str, Any]
    manager: Dict[str, int]
