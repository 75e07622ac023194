from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import Field

from app.models.base import BaseModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    PAYPAL = "paypal"
    CARD = "card"


class DeliveryMethod(str, Enum):
    DIGITAL = "digital"
    NONE = "none"


class MessageType(str, Enum):
    ORDER = "order"
    SYSTEM = "system"
    SUPPORT = "support"


class Order(BaseModel, table=True):
    """
    주문
    - items: 주문 시점의 상품 스냅샷
      [{productId, name, price, originalPrice, discountPercentage, quantity}]
    - provider_order_id: 결제 대행사 주문 id (결제 생성 시 저장)
    """

    __tablename__ = "orders"

    order_id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True, max_length=64)

    user_id: int = Field(foreign_key="users.user_id", nullable=False, index=True)

    items: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
    )

    subtotal: float = Field(default=0)

    total: float = Field(default=0)

    coupon_code: Optional[str] = Field(default=None, max_length=50)

    coupon_discount: float = Field(default=0)

    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)

    payment_method: PaymentMethod = Field(default=PaymentMethod.PAYPAL)

    payment_id: Optional[str] = Field(default=None, max_length=100)

    provider_order_id: Optional[str] = Field(default=None, max_length=100)

    delivery_method: DeliveryMethod = Field(default=DeliveryMethod.NONE)

    @property
    def short_id(self) -> str:
        return self.order_id[:8]


class UserMessage(BaseModel, table=True):
    """
    사용자 알림 메시지 (주문 상태 변경 등)
    """

    __tablename__ = "user_messages"

    message_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    user_id: int = Field(foreign_key="users.user_id", nullable=False, index=True)

    title: str = Field(max_length=200, nullable=False)

    content: str = Field(max_length=2000, nullable=False)

    type: MessageType = Field(default=MessageType.SYSTEM)

    order_id: Optional[str] = Field(default=None, max_length=64)

    is_read: bool = Field(default=False)
