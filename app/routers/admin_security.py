# routers/admin_security.py
import logging
from typing import Annotated, List

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.repositories.security import SecurityRepository
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.security import (BlockedIPResponse, BlockIPRequest,
                                  SecurityEventListResponse,
                                  SecurityEventResponse, SecurityStatsResponse,
                                  UnblockIPRequest)
from app.services.advanced_security import (AdvancedSecurityManager,
                                            get_security_manager)
from app.services.permissions import require_permission
from app.services.rate_limit import get_client_ip, rate_limited
from app.services.security_monitor import SecurityEventType, Severity
from app.utils.router_utils import get_router, raise_for_error
from app.utils.validation import is_valid_ipv4

logger = logging.getLogger(__name__)

router = get_router("admin/security", tags=["admin-security"])
admin_limit = Depends(rate_limited("ADMIN"))


def get_security_repository() -> SecurityRepository:
    return SecurityRepository()


@router.post(
    "/block-ip",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "필수값 누락 / IP 형식 오류"},
        409: {"description": "이미 차단된 IP"},
    },
    dependencies=[admin_limit],
)
async def block_ip(
    req: BlockIPRequest,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("security.manage"))],
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    if not req.ip or not req.reason:
        raise_for_error(ErrorResponse(error="IP and reason are required"))
    if not is_valid_ipv4(req.ip):
        raise_for_error(ErrorResponse(error="Invalid IP address format"))

    # IPAlreadyBlockedError 는 전역 핸들러에서 409 로 변환
    kwargs = {"duration_seconds": req.duration_seconds} if req.duration_seconds else {}
    await repo.block_ip(db, req.ip, req.reason, str(current_user.user_id), **kwargs)

    await manager.log_event(
        SecurityEventType.IP_BLOCKED, Severity.HIGH, req.ip,
        {"reason": req.reason, "blockedBy": current_user.user_id},
        request.headers.get("user-agent"),
    )
    return MessageResponse(message=f"IP {req.ip} has been blocked successfully")


@router.post(
    "/unblock-ip",
    response_model=MessageResponse,
    responses={404: {"description": "차단되지 않은 IP"}},
    dependencies=[admin_limit],
)
async def unblock_ip(
    req: UnblockIPRequest,
    request: Request,
    current_user: Annotated[User, Depends(require_permission("security.manage"))],
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    if not req.ip:
        raise_for_error(ErrorResponse(error="IP is required"))

    await repo.unblock_ip(db, req.ip, str(current_user.user_id))
    manager.forget_ip(req.ip)

    await manager.log_event(
        SecurityEventType.IP_UNBLOCKED, Severity.MEDIUM, req.ip,
        {"unblockedBy": current_user.user_id, "adminIP": get_client_ip(request)},
        request.headers.get("user-agent"),
    )
    return MessageResponse(message=f"IP {req.ip} has been unblocked successfully")


@router.get(
    "/blocked-ips",
    response_model=List[BlockedIPResponse],
    dependencies=[admin_limit, Depends(require_permission("security.view"))],
)
async def get_blocked_ips(
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
):
    return await repo.get_blocked_ips(db)


@router.get(
    "/events",
    response_model=SecurityEventListResponse,
    dependencies=[admin_limit, Depends(require_permission("security.view"))],
)
async def get_events(
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    events = await repo.get_events(db, limit=limit, offset=offset)
    return SecurityEventListResponse(
        events=[SecurityEventResponse.model_validate(e) for e in events],
        limit=limit,
        offset=offset,
    )


@router.post(
    "/events/{event_id}/resolve",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "이벤트 없음"}},
    dependencies=[admin_limit, Depends(require_permission("security.manage"))],
)
async def resolve_event(
    event_id: str,
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    stored = await repo.resolve_event(db, event_id)
    in_memory = manager.monitor.resolve_event(event_id)
    if not stored and not in_memory:
        raise_for_error(ErrorResponse(error="Event not found", status_code=404))
    return MessageResponse(message="Event resolved")


@router.get(
    "/stats",
    response_model=SecurityStatsResponse,
    dependencies=[admin_limit, Depends(require_permission("security.view"))],
)
async def get_stats(
    db: Annotated[AsyncSession, Depends(get_session)],
    repo: Annotated[SecurityRepository, Depends(get_security_repository)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    return SecurityStatsResponse(
        store=await repo.get_event_stats(db),
        monitor=manager.monitor.get_stats(),
        manager=manager.get_security_stats(),
    )
