"""
주문 / 결제 서비스

주문 생성
    - 상품 가격은 DB 기준 (할인가가 있으면 할인가, discountPercentage 기록)
    - 실물 상품만 재고 검사, 재고 차감은 결제 승인 시점
    - 쿠폰은 주문 저장 후 사용 기록
결제 승인 (capture)
    - pending 주문만, 저장된 대행사 주문 id 와 일치해야 함
    - COMPLETED 가 아니면 실패
    - 디지털 주문은 결제 즉시 completed
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import DeliveryMethod, Order, OrderStatus
from app.models.user import User
from app.repositories.order import OrderRepository
from app.repositories.product import ProductRepository
from app.schemas.common import ErrorResponse
from app.schemas.order import OrderCreateRequest
from app.services.coupon_service import CouponService
from app.services.message_service import MessageService
from app.services.payment import PayPalClient, ProviderOrder

logger = logging.getLogger(__name__)

CANCELLABLE = (OrderStatus.PENDING, OrderStatus.PAID)

STATUS_MESSAGES = {
    OrderStatus.PENDING: (
        "Order Status Changed to Pending",
        "Your order #{id} status has been changed to pending. Please complete the payment to proceed.",
    ),
    OrderStatus.PAID: (
        "Payment Confirmed",
        "Your payment for order #{id} has been confirmed. Thank you for your purchase!",
    ),
    OrderStatus.COMPLETED: (
        "Order Completed",
        "Your order #{id} has been completed. You can access your purchased items in your account.",
    ),
    OrderStatus.CANCELLED: (
        "Order Cancelled",
        "Your order #{id} has been cancelled. Please contact support if you have any questions.",
    ),
}


class OrderService:

    def __init__(
        self,
        repository: Optional[OrderRepository] = None,
        product_repository: Optional[ProductRepository] = None,
        coupon_service: Optional[CouponService] = None,
        message_service: Optional[MessageService] = None,
    ):
        self.repository = repository or OrderRepository()
        self.product_repository = product_repository or ProductRepository()
        self.coupon_service = coupon_service or CouponService(product_repository=self.product_repository)
        self.messages = message_service or MessageService(self.repository)

    # -------------------- #
    # 주문 생성 / 조회
    # -------------------- #

    async def _build_lines(
        self, db: AsyncSession, data: OrderCreateRequest
    ) -> tuple[List[Dict[str, Any]], Optional[ErrorResponse]]:
        lines: List[Dict[str, Any]] = []
        for item in data.items:
            product = await self.product_repository.get_product(db, item.product_id)
            if product is None:
                return [], ErrorResponse(error=f"Product not found: {item.product_id}", status_code=404)

            name_en = product.name.get("en", "")
            if product.out_of_stock:
                return [], ErrorResponse(error=f"Product is out of stock: {name_en}")
            if not product.is_digital and product.stock < item.quantity:
                return [], ErrorResponse(
                    error=f"Insufficient stock for product: {name_en}. Only {product.stock} available."
                )

            price = product.effective_price()
            line: Dict[str, Any] = {
                "productId": product.product_id,
                "name": dict(product.name),
                "category": product.category,
                "price": price,
                "quantity": item.quantity,
                "isDigital": product.is_digital,
            }
            if price < product.price:
                line["originalPrice"] = product.price
                line["discountPercentage"] = round((product.price - price) / product.price * 100)
            lines.append(line)
        return lines, None

    async def create_order(
        self, db: AsyncSession, user: User, data: OrderCreateRequest
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        """
        Returns:
            성공 시: (Order, None)
            실패 시: (None, ErrorResponse)  400 / 404
        """
        if not data.items:
            return None, ErrorResponse(error="Order must contain at least one item")

        lines, error = await self._build_lines(db, data)
        if error:
            return None, error

        subtotal = round(sum(line["price"] * line["quantity"] for line in lines), 2)
        evaluation = None
        if data.coupon_code and data.coupon_code.strip():
            evaluation, error = await self.coupon_service.evaluate(db, data.coupon_code, user.user_id, lines)
            if error:
                return None, error

        all_digital = all(line["isDigital"] for line in lines)
        order = Order(
            user_id=user.user_id,
            items=lines,
            subtotal=subtotal,
            total=evaluation.final_total if evaluation else subtotal,
            coupon_code=evaluation.coupon.code if evaluation else None,
            coupon_discount=evaluation.discount if evaluation else 0,
            payment_method=data.payment_method,
            delivery_method=DeliveryMethod.DIGITAL if all_digital else DeliveryMethod.NONE,
        )
        order = await self.repository.create(db, order)

        if evaluation:
            await self.coupon_service.record_usage(
                db, evaluation.coupon, user.user_id, order.order_id, evaluation.discount
            )

        await self.messages.send(
            db, user.user_id, "New Order Created",
            f"Your order #{order.short_id} has been created and is awaiting payment. Total: ${order.total:.2f}",
            order_id=order.order_id,
        )
        return order, None

    async def get_order(
        self, db: AsyncSession, order_id: str, user: User, can_view_all: bool = False
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        order = await self.repository.get(db, order_id)
        if order is None:
            return None, ErrorResponse(error="Order not found", status_code=404)
        if order.user_id != user.user_id and not can_view_all:
            return None, ErrorResponse(error="Forbidden", status_code=403)
        return order, None

    async def list_user_orders(self, db: AsyncSession, user_id: int) -> List[Order]:
        return await self.repository.get_user_orders(db, user_id)

    async def cancel_order(
        self, db: AsyncSession, user: User, order_id: str
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        order, error = await self.get_order(db, order_id, user)
        if error:
            return None, error
        if order.status not in CANCELLABLE:
            return None, ErrorResponse(error="This order cannot be cancelled")

        order = await self.repository.update(db, order, status=OrderStatus.CANCELLED)
        logger.info(f"주문 취소: {order.order_id} (user={user.user_id})")
        await self._notify_status(db, order)
        return order, None

    # -------------------- #
    # 관리자
    # -------------------- #

    async def list_all_orders(self, db: AsyncSession, status: Optional[OrderStatus] = None):
        return await self.repository.get_all_with_users(db, status)

    async def update_status(
        self, db: AsyncSession, order_id: str, status: OrderStatus
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        order = await self.repository.get(db, order_id)
        if order is None:
            return None, ErrorResponse(error="Order not found", status_code=404)

        order = await self.repository.update(db, order, status=status)
        logger.info(f"주문 상태 변경: {order.order_id} → {status.value}")
        await self._notify_status(db, order)
        return order, None

    async def _notify_status(self, db: AsyncSession, order: Order) -> None:
        title, content = STATUS_MESSAGES[order.status]
        await self.messages.send(
            db, order.user_id, title, content.format(id=order.short_id), order_id=order.order_id
        )

    # -------------------- #
    # 결제
    # -------------------- #

    async def _payable_order(
        self, db: AsyncSession, user: User, order_id: str
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        order, error = await self.get_order(db, order_id, user)
        if error:
            return None, error
        if order.status != OrderStatus.PENDING:
            return None, ErrorResponse(error="Order is not in pending status")
        return order, None

    async def start_payment(
        self, db: AsyncSession, user: User, order_id: str, gateway: PayPalClient
    ) -> tuple[Optional[ProviderOrder], Optional[ErrorResponse]]:
        """
        대행사 주문 생성 후 provider_order_id 저장
        대행사 오류(PaymentGatewayError)는 그대로 전파 → 502
        """
        if not gateway.is_configured:
            return None, ErrorResponse(error="Payment gateway not configured", status_code=503)

        order, error = await self._payable_order(db, user, order_id)
        if error:
            return None, error

        provider_order = await gateway.create_order(order.total, order.order_id)
        await self.repository.update(db, order, provider_order_id=provider_order.id)
        logger.info(f"결제 생성: order={order.order_id} provider={provider_order.id}")
        return provider_order, None

    async def capture_payment(
        self, db: AsyncSession, user: User, order_id: str, provider_order_id: str, gateway: PayPalClient
    ) -> tuple[Optional[Order], Optional[ErrorResponse]]:
        if not gateway.is_configured:
            return None, ErrorResponse(error="Payment gateway not configured", status_code=503)

        order, error = await self._payable_order(db, user, order_id)
        if error:
            return None, error
        if order.provider_order_id != provider_order_id:
            return None, ErrorResponse(error="Payment does not match this order")

        result = await gateway.capture_order(provider_order_id)
        if result.status != "COMPLETED":
            logger.warning(f"결제 미완료: order={order.order_id} status={result.status}")
            return None, ErrorResponse(error=f"Payment not completed. Status: {result.status}")

        await self._decrement_stock(db, order)

        order = await self.repository.update(
            db, order, status=OrderStatus.PAID, payment_id=result.capture_id or provider_order_id
        )
        logger.info(f"결제 완료: order={order.order_id} payment={order.payment_id}")
        await self.messages.send(
            db, order.user_id, "Payment Successful",
            f"Your payment for order #{order.short_id} has been successfully processed. "
            f"Thank you for your purchase!",
            order_id=order.order_id,
        )

        if order.delivery_method == DeliveryMethod.DIGITAL:
            order = await self.repository.update(db, order, status=OrderStatus.COMPLETED)
            await self.messages.send(
                db, order.user_id, "Order Completed",
                f"Your order #{order.short_id} is now complete. "
                f"You can access your digital items in your account.",
                order_id=order.order_id,
            )
        return order, None

    async def _decrement_stock(self, db: AsyncSession, order: Order) -> None:
        for line in order.items:
            if line.get("isDigital"):
                continue
            try:
                await self.product_repository.decrement_stock(db, line["productId"], int(line["quantity"]))
            except Exception as e:
                # 결제는 이미 승인되었으므로 재고 오류는 기록만 함
                logger.error(f"재고 차감 실패 (order={order.order_id}, product={line.get('productId')}): {e}")
