from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.coupon import DiscountType


class CouponCreateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType
    discount_value: float
    min_purchase_amount: float = Field(0, ge=0)
    max_discount_amount: Optional[float] = Field(None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = Field(None, ge=1)
    user_limit: Optional[int] = Field(None, ge=1)
    is_active: bool = True
    applicable_categories: List[str] = Field(default_factory=list)
    applicable_products: List[int] = Field(default_factory=list)


class CouponUpdateRequest(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = None
    min_purchase_amount: Optional[float] = Field(None, ge=0)
    max_discount_amount: Optional[float] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    user_limit: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    applicable_categories: Optional[List[str]] = None
    applicable_products: Optional[List[int]] = None


class CouponResponse(BaseModel):
    coupon_id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float
    min_purchase_amount: float = 0
    max_discount_amount: Optional[float] = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    usage_count: int = 0
    user_limit: Optional[int] = None
    is_active: bool
    applicable_categories: List[str] = Field(default_factory=list)
    applicable_products: List[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class CartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    quantity: int = Field(1, ge=1, le=100)


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    items: List[CartItem] = Field(..., min_length=1)


class AppliedCoupon(BaseModel):
    code: str
    discount_type: DiscountType = Field(serialization_alias="discountType")
    discount_value: float = Field(serialization_alias="discountValue")


class CouponValidateResponse(BaseModel):
    valid: bool = True
    coupon: AppliedCoupon
    discount: float
    subtotal: float
    final_total: float = Field(serialization_alias="finalTotal")
