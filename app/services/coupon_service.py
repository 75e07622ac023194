"""
쿠폰 서비스

검증 순서 (처음 실패한 항목의 메시지를 돌려줌)
    존재 → 활성 → 유효기간 → 전체 사용 한도 → 사용자 한도 → 최소 구매 금액 → 적용 대상
할인액은 적용 대상 상품 소계 기준으로 계산하고 센트 단위로 반올림
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.coupon import Coupon, DiscountType
from app.repositories.coupon import CouponRepository
from app.repositories.product import ProductRepository
from app.schemas.common import ErrorResponse
from app.schemas.coupon import (CartItem, CouponCreateRequest,
                                CouponUpdateRequest)
from app.utils.datetime import to_naive_utc, utc_now_naive

logger = logging.getLogger(__name__)


@dataclass
class CouponEvaluation:
    coupon: Coupon
    discount: float
    subtotal: float

    @property
    def final_total(self) -> float:
        return round(max(0.0, self.subtotal - self.discount), 2)


def _line_total(line: Dict[str, Any]) -> float:
    return float(line["price"]) * int(line["quantity"])


def applicable_lines(coupon: Coupon, lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    쿠폰 적용 대상 주문 라인 (카테고리/상품 제한이 없으면 전체)
    """
    if not coupon.applicable_categories and not coupon.applicable_products:
        return list(lines)

    categories = set(coupon.applicable_categories)
    products = set(coupon.applicable_products)
    return [
        line for line in lines
        if line.get("category") in categories or line.get("productId") in products
    ]


def calculate_discount(coupon: Coupon, amount: float) -> float:
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = amount * coupon.discount_value / 100
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
    else:
        discount = min(coupon.discount_value, amount)
    return round(discount, 2)


class CouponService:

    def __init__(
        self,
        repository: Optional[CouponRepository] = None,
        product_repository: Optional[ProductRepository] = None,
    ):
        self.repository = repository or CouponRepository()
        self.product_repository = product_repository or ProductRepository()

    # -------------------- #
    # 검증 / 적용
    # -------------------- #

    async def evaluate(
        self, db: AsyncSession, code: str, user_id: int, lines: List[Dict[str, Any]]
    ) -> tuple[Optional[CouponEvaluation], Optional[ErrorResponse]]:
        """
        주문 라인({productId, category, price, quantity})에 쿠폰을 적용

        Returns:
            성공 시: (CouponEvaluation, None)
            실패 시: (None, ErrorResponse)
        """
        coupon = await self.repository.get_by_code(db, code)
        if coupon is None:
            return None, ErrorResponse(error="Invalid coupon code", status_code=404)

        if not coupon.is_active:
            return None, ErrorResponse(error="This coupon is not active")

        now = utc_now_naive()
        if now < coupon.valid_from:
            return None, ErrorResponse(error="This coupon is not yet valid")
        if now > coupon.valid_until:
            return None, ErrorResponse(error="This coupon has expired")

        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return None, ErrorResponse(error="This coupon has reached its usage limit")

        if coupon.user_limit is not None:
            used = await self.repository.count_user_usages(db, coupon.coupon_id, user_id)
            if used >= coupon.user_limit:
                return None, ErrorResponse(error="You have reached the maximum usage limit for this coupon")

        subtotal = round(sum(_line_total(line) for line in lines), 2)
        eligible = applicable_lines(coupon, lines)
        eligible_total = round(sum(_line_total(line) for line in eligible), 2)

        if coupon.min_purchase_amount and eligible_total < coupon.min_purchase_amount:
            return None, ErrorResponse(
                error=f"Minimum purchase amount of ${coupon.min_purchase_amount:.2f} is required for this coupon"
            )

        if not eligible:
            return None, ErrorResponse(error="This coupon does not apply to any items in your cart")

        discount = calculate_discount(coupon, eligible_total)
        return CouponEvaluation(coupon=coupon, discount=discount, subtotal=subtotal), None

    async def validate_cart(
        self, db: AsyncSession, code: str, user_id: int, items: List[CartItem]
    ) -> tuple[Optional[CouponEvaluation], Optional[ErrorResponse]]:
        """
        장바구니 항목의 가격은 DB 상품 기준으로 계산
        """
        lines: List[Dict[str, Any]] = []
        for item in items:
            product = await self.product_repository.get_product(db, item.product_id)
            if product is None:
                return None, ErrorResponse(error=f"Product not found: {item.product_id}", status_code=404)
            lines.append({
                "productId": product.product_id,
                "category": product.category,
                "price": product.effective_price(),
                "quantity": item.quantity,
            })
        return await self.evaluate(db, code, user_id, lines)

    async def record_usage(
        self, db: AsyncSession, coupon: Coupon, user_id: int, order_id: str, discount: float
    ) -> None:
        await self.repository.record_usage(db, coupon, user_id, order_id, discount)
        logger.info(f"쿠폰 사용: {coupon.code} (user={user_id}, order={order_id}, discount={discount})")

    # -------------------- #
    # 관리자 CRUD
    # -------------------- #

    def _check_values(
        self, discount_type: DiscountType, discount_value: float, valid_from, valid_until
    ) -> Optional[ErrorResponse]:
        if discount_type == DiscountType.PERCENTAGE and not 0 < discount_value <= 100:
            return ErrorResponse(error="Percentage discount must be between 0 and 100")
        if discount_type == DiscountType.FIXED and discount_value <= 0:
            return ErrorResponse(error="Fixed discount must be greater than 0")
        if valid_until <= valid_from:
            return ErrorResponse(error="validUntil must be after validFrom")
        return None

    async def list_coupons(self, db: AsyncSession) -> List[Coupon]:
        return await self.repository.get_all(db)

    async def get_coupon(self, db: AsyncSession, coupon_id: int) -> Optional[Coupon]:
        return await self.repository.get(db, coupon_id)

    async def create_coupon(
        self, db: AsyncSession, data: CouponCreateRequest
    ) -> tuple[Optional[Coupon], Optional[ErrorResponse]]:
        valid_from = to_naive_utc(data.valid_from)
        valid_until = to_naive_utc(data.valid_until)
        error = self._check_values(data.discount_type, data.discount_value, valid_from, valid_until)
        if error:
            return None, error

        code = data.code.strip().upper()
        if await self.repository.get_by_code(db, code):
            return None, ErrorResponse(error="Coupon code already exists", status_code=409)

        payload = data.model_dump()
        payload.update(code=code, valid_from=valid_from, valid_until=valid_until)
        return await self.repository.create(db, Coupon(**payload)), None

    async def update_coupon(
        self, db: AsyncSession, coupon_id: int, data: CouponUpdateRequest
    ) -> tuple[Optional[Coupon], Optional[ErrorResponse]]:
        coupon = await self.repository.get(db, coupon_id)
        if coupon is None:
            return None, ErrorResponse(error="Coupon not found", status_code=404)

        update_data = data.model_dump(exclude_unset=True)
        for key in ("valid_from", "valid_until"):
            if update_data.get(key) is not None:
                update_data[key] = to_naive_utc(update_data[key])
        if update_data.get("code"):
            update_data["code"] = update_data["code"].strip().upper()
            existing = await self.repository.get_by_code(db, update_data["code"])
            if existing is not None and existing.coupon_id != coupon.coupon_id:
                return None, ErrorResponse(error="Coupon code already exists", status_code=409)

        # 필수 컬럼은 None 으로 덮어쓰지 않음
        for key in ("code", "discount_type", "discount_value", "valid_from", "valid_until",
                    "min_purchase_amount", "is_active", "applicable_categories", "applicable_products"):
            if key in update_data and update_data[key] is None:
                del update_data[key]

        error = self._check_values(
            update_data.get("discount_type", coupon.discount_type),
            update_data.get("discount_value", coupon.discount_value),
            update_data.get("valid_from", coupon.valid_from),
            update_data.get("valid_until", coupon.valid_until),
        )
        if error:
            return None, error

        return await self.repository.update(db, coupon, update_data), None

    async def delete_coupon(self, db: AsyncSession, coupon_id: int) -> Optional[ErrorResponse]:
        coupon = await self.repository.get(db, coupon_id)
        if coupon is None:
            return ErrorResponse(error="Coupon not found", status_code=404)
        await self.repository.delete(db, coupon)
        return None
