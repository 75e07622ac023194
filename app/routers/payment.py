# routers/payment.py
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.order import (OrderIdRequest, OrderResponse,
                               PaymentCaptureRequest, PaymentCaptureResponse,
                               PaymentConfigResponse, PaymentCreateResponse)
from app.services.advanced_security import RequestContext, protected
from app.services.order_service import OrderService
from app.services.payment import PayPalClient, get_payment_gateway
from app.services.rate_limit import rate_limited
from app.utils.dependencies import get_current_user
from app.utils.router_utils import get_router, parse_body, raise_for_error

router = get_router("payment", tags=["payment"])

payment_gate = protected(allowed_methods=["POST"], require_auth=True)


def get_order_service() -> OrderService:
    return OrderService()


@router.get(
    "/config",
    response_model=PaymentConfigResponse,
    responses={503: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("GENERAL_API"))],
)
async def payment_config(gateway: Annotated[PayPalClient, Depends(get_payment_gateway)]):
    """
    프론트엔드 결제 버튼용 공개 설정 (client id 만 노출)
    """
    if not gateway.is_configured:
        raise_for_error(ErrorResponse(error="Payment gateway not configured", status_code=503))
    return PaymentConfigResponse(client_id=gateway.client_id, environment=gateway.environment)


@router.post(
    "/create-order",
    response_model=PaymentCreateResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse},
               404: {"model": ErrorResponse}, 502: {"description": "결제 대행사 오류"}},
)
async def create_payment_order(
    ctx: Annotated[RequestContext, Depends(payment_gate)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    gateway: Annotated[PayPalClient, Depends(get_payment_gateway)],
):
    data = parse_body(OrderIdRequest, ctx)
    provider_order, error = await service.start_payment(db, current_user, data.order_id, gateway)
    if error:
        raise_for_error(error)
    return PaymentCreateResponse(order_id=provider_order.id, approval_url=provider_order.approval_url)


@router.post(
    "/capture-order",
    response_model=PaymentCaptureResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse},
               404: {"model": ErrorResponse}, 502: {"description": "결제 대행사 오류"}},
)
async def capture_payment_order(
    ctx: Annotated[RequestContext, Depends(payment_gate)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[OrderService, Depends(get_order_service)],
    gateway: Annotated[PayPalClient, Depends(get_payment_gateway)],
):
    data = parse_body(PaymentCaptureRequest, ctx)
    order, error = await service.capture_payment(
        db, current_user, data.order_id, data.paypal_order_id, gateway
    )
    if error:
        raise_for_error(error)
    return PaymentCaptureResponse(order=OrderResponse.model_validate(order))
