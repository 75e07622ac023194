# routers/orders.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.order import OrderStatus
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.order import (AdminOrderResponse, MarkReadRequest,
                               MessageCountResponse, OrderCreateRequest,
                               OrderIdRequest, OrderResponse,
                               OrderStatusUpdate, UserMessageResponse)
from app.services.advanced_security import RequestContext, protected
from app.services.message_service import MessageService
from app.services.order_service import OrderService
from app.services.permissions import (PermissionService, get_permission_service,
                                      has_permission, require_permission)
from app.services.rate_limit import rate_limited
from app.utils.dependencies import get_current_user
from app.utils.router_utils import parse_body, raise_for_error

router = APIRouter(prefix="/api", tags=["orders"])
public_limit = Depends(rate_limited("GENERAL_API"))

# 주문 생성 / 취소는 로그인 필수 + POST 전용 게이트
checkout_gate = protected(allowed_methods=["POST"], require_auth=True)


def get_order_service() -> OrderService:
    return OrderService()


def get_message_service() -> MessageService:
    return MessageService()


# ----------------------------------------------------------------------
# 주문
# ----------------------------------------------------------------------
@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_order(
    ctx: Annotated[RequestContext, Depends(checkout_gate)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
):
    data = parse_body(OrderCreateRequest, ctx)
    order, error = await service.create_order(db, current_user, data)
    if error:
        raise_for_error(error)
    return order


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[public_limit],
)
async def get_order(
    order_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    permissions: Annotated[PermissionService, Depends(get_permission_service)],
):
    """
    본인 주문 또는 orders.view 권한 보유자만 조회 가능
    """
    granted = await permissions.permissions_for_user(db, current_user)
    order, error = await service.get_order(db, order_id, current_user, has_permission(granted, "orders.view"))
    if error:
        raise_for_error(error)
    return order


@router.get("/user/orders", response_model=List[OrderResponse], dependencies=[public_limit])
async def list_my_orders(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
):
    return await service.list_user_orders(db, current_user.user_id)


@router.post(
    "/user/orders/cancel",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def cancel_order(
    ctx: Annotated[RequestContext, Depends(checkout_gate)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
):
    data = parse_body(OrderIdRequest, ctx)
    order, error = await service.cancel_order(db, current_user, data.order_id)
    if error:
        raise_for_error(error)
    return order


# ----------------------------------------------------------------------
# 관리자 주문
# ----------------------------------------------------------------------
@router.get(
    "/admin/orders",
    response_model=List[AdminOrderResponse],
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("orders.view"))],
)
async def admin_list_orders(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
):
    rows = await service.list_all_orders(db, status_filter)
    return [
        AdminOrderResponse(
            **OrderResponse.model_validate(order).model_dump(),
            username=user.username if user else None,
            email=user.email if user else None,
        )
        for order, user in rows
    ]


@router.put(
    "/admin/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("orders.edit"))],
)
async def admin_update_order_status(
    order_id: str,
    req: OrderStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
):
    order, error = await service.update_status(db, order_id, req.status)
    if error:
        raise_for_error(error)
    return order


# ----------------------------------------------------------------------
# 사용자 알림 메시지
# ----------------------------------------------------------------------
@router.get(
    "/user/messages",
    response_model=List[UserMessageResponse] | MessageCountResponse,
    dependencies=[public_limit],
)
async def list_messages(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[MessageService, Depends(get_message_service)],
    count_only: bool = Query(False, alias="countOnly"),
):
    """
    - **countOnly**: true 면 읽지 않은 메시지 수만 반환
    """
    if count_only:
        return MessageCountResponse(count=await service.count_unread(db, current_user.user_id))
    return await service.list_messages(db, current_user.user_id)


@router.put(
    "/user/messages",
    response_model=UserMessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[public_limit],
)
async def mark_message_read(
    req: MarkReadRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[MessageService, Depends(get_message_service)],
):
    message, error = await service.mark_read(db, current_user.user_id, req.message_id)
    if error:
        raise_for_error(error)
    return message


@router.delete(
    "/user/messages",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[public_limit],
)
async def delete_message(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[MessageService, Depends(get_message_service)],
    message_id: int = Query(..., alias="id"),
):
    error = await service.delete(db, current_user.user_id, message_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Message deleted successfully")
