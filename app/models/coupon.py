from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field

from app.models.base import BaseModel


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(BaseModel, table=True):
    """
    할인 쿠폰
    - code 는 대문자로 저장
    - applicable_categories / applicable_products 가 비어 있으면 전체 상품 적용
    """

    __tablename__ = "coupons"

    coupon_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    code: str = Field(max_length=50, nullable=False, sa_column_kwargs={"unique": True})

    description: Optional[str] = Field(default=None, max_length=500)

    discount_type: DiscountType = Field(nullable=False)

    discount_value: float = Field(nullable=False)

    min_purchase_amount: float = Field(default=0)

    max_discount_amount: Optional[float] = Field(default=None)

    valid_from: datetime = Field(sa_column=Column(DateTime(timezone=False), nullable=False))

    valid_until: datetime = Field(sa_column=Column(DateTime(timezone=False), nullable=False))

    usage_limit: Optional[int] = Field(default=None, description="전체 사용 한도 (없으면 무제한)")

    usage_count: int = Field(default=0)

    user_limit: Optional[int] = Field(default=None, description="사용자당 사용 한도")

    is_active: bool = Field(default=True)

    applicable_categories: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
    )

    applicable_products: List[int] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
    )


class CouponUsage(BaseModel, table=True):
    """
    쿠폰 사용 기록 (사용자별 한도 계산용)
    """

    __tablename__ = "coupon_usages"

    usage_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    coupon_id: int = Field(foreign_key="coupons.coupon_id", nullable=False, index=True)

    user_id: int = Field(foreign_key="users.user_id", nullable=False, index=True)

    order_id: str = Field(max_length=64, nullable=False)

    discount_amount: float = Field(default=0)
