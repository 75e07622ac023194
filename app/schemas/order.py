from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.order import (DeliveryMethod, MessageType, OrderStatus,
                              PaymentMethod)
from app.schemas.coupon import CartItem


class OrderCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[CartItem] = Field(default_factory=list)
    coupon_code: Optional[str] = Field(None, alias="couponCode", max_length=50)
    payment_method: PaymentMethod = Field(PaymentMethod.PAYPAL, alias="paymentMethod")


class OrderResponse(BaseModel):
    order_id: str
    user_id: int
    items: List[Dict[str, Any]]
    subtotal: float
    total: float
    coupon_code: Optional[str] = None
    coupon_discount: float = 0
    status: OrderStatus
    payment_method: PaymentMethod
    payment_id: Optional[str] = None
    delivery_method: DeliveryMethod
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminOrderResponse(OrderResponse):
    username: Optional[str] = None
    email: Optional[str] = None


class OrderIdRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId", min_length=1, max_length=64)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# -------------------- #
# 결제
# -------------------- #

class PaymentCaptureRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paypal_order_id: str = Field(..., alias="paypalOrderId", min_length=1, max_length=100)
    order_id: str = Field(..., alias="orderId", min_length=1, max_length=64)


class PaymentCreateResponse(BaseModel):
    order_id: str = Field(serialization_alias="orderId")
    approval_url: Optional[str] = Field(None, serialization_alias="approvalUrl")


class PaymentCaptureResponse(BaseModel):
    success: bool = True
    order: OrderResponse


class PaymentConfigResponse(BaseModel):
    client_id: str = Field(serialization_alias="clientId")
    environment: str


# -------------------- #
# 사용자 메시지
# -------------------- #

class UserMessageResponse(BaseModel):
    message_id: int
    title: str
    content: str
    type: MessageType
    order_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageCountResponse(BaseModel):
    count: int


class MarkReadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int = Field(..., alias="messageId")
