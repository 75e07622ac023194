# routers/coupons.py
from typing import Annotated, List

from fastapi import Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.coupon import (AppliedCoupon, CouponCreateRequest,
                                CouponResponse, CouponUpdateRequest,
                                CouponValidateRequest, CouponValidateResponse)
from app.services.coupon_service import CouponService
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited
from app.utils.dependencies import get_current_user
from app.utils.router_utils import get_router, raise_for_error

router = get_router("coupons", tags=["coupons"])
admin_limit = Depends(rate_limited("ADMIN"))


def get_coupon_service() -> CouponService:
    return CouponService()


@router.post(
    "/validate",
    response_model=CouponValidateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("GENERAL_API"))],
)
async def validate_coupon(
    req: CouponValidateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    """
    장바구니에 쿠폰 적용 결과 미리보기 (사용 기록은 남기지 않음)
    """
    evaluation, error = await service.validate_cart(db, req.code, current_user.user_id, req.items)
    if error:
        raise_for_error(error)

    return CouponValidateResponse(
        coupon=AppliedCoupon(
            code=evaluation.coupon.code,
            discount_type=evaluation.coupon.discount_type,
            discount_value=evaluation.coupon.discount_value,
        ),
        discount=evaluation.discount,
        subtotal=evaluation.subtotal,
        final_total=evaluation.final_total,
    )


@router.get(
    "",
    response_model=List[CouponResponse],
    dependencies=[admin_limit, Depends(require_permission("store.coupons.view", "store.coupons.manage"))],
)
async def list_coupons(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    return await service.list_coupons(db)


@router.post(
    "",
    response_model=CouponResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.coupons.manage"))],
)
async def create_coupon(
    req: CouponCreateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    coupon, error = await service.create_coupon(db, req)
    if error:
        raise_for_error(error)
    return coupon


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.coupons.view", "store.coupons.manage"))],
)
async def get_coupon(
    coupon_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    coupon = await service.get_coupon(db, coupon_id)
    if coupon is None:
        raise_for_error(ErrorResponse(error="Coupon not found", status_code=404))
    return coupon


@router.put(
    "/{coupon_id}",
    response_model=CouponResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.coupons.manage"))],
)
async def update_coupon(
    coupon_id: int,
    req: CouponUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    coupon, error = await service.update_coupon(db, coupon_id, req)
    if error:
        raise_for_error(error)
    return coupon


@router.delete(
    "/{coupon_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, Depends(require_permission("store.coupons.manage"))],
)
async def delete_coupon(
    coupon_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[CouponService, Depends(get_coupon_service)],
):
    error = await service.delete_coupon(db, coupon_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Coupon deleted successfully")
