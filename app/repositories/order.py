import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.order import Order, OrderStatus, UserMessage
from app.models.user import User
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class OrderRepository:
    """
    주문 / 사용자 메시지 저장소
    """

    # -------------------- #
    # 주문
    # -------------------- #

    async def create(self, db: AsyncSession, order: Order) -> Order:
        try:
            db.add(order)
            await db.commit()
            await db.refresh(order)
        except Exception as e:
            await db.rollback()
            logger.error(f"주문 저장 오류 (user={order.user_id}): {e}")
            raise

        logger.info(f"주문 생성 완료: {order.order_id} (user={order.user_id}, total={order.total})")
        return order

    async def get(self, db: AsyncSession, order_id: str) -> Optional[Order]:
        order = await db.get(Order, order_id)
        if order is None or order.is_deleted:
            return None
        return order

    async def get_user_orders(self, db: AsyncSession, user_id: int) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id, Order.is_deleted.is_(False))
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_all_with_users(
        self, db: AsyncSession, status: Optional[OrderStatus] = None
    ) -> List[tuple[Order, Optional[User]]]:
        stmt = (
            select(Order, User)
            .join(User, User.user_id == Order.user_id, isouter=True)
            .where(Order.is_deleted.is_(False))
        )
        if status is not None:
            stmt = stmt.where(Order.status == status)
        result = await db.execute(stmt.order_by(Order.created_at.desc()))
        return [(order, user) for order, user in result.all()]

    async def update(self, db: AsyncSession, order: Order, **fields) -> Order:
        """
        허용 필드: status, payment_id, provider_order_id
        """
        try:
            for key in ("status", "payment_id", "provider_order_id"):
                if key in fields:
                    setattr(order, key, fields[key])
            order.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(order)
        except Exception as e:
            await db.rollback()
            logger.error(f"주문 수정 오류 (id={order.order_id}): {e}")
            raise
        return order

    # -------------------- #
    # 사용자 메시지
    # -------------------- #

    async def create_message(self, db: AsyncSession, message: UserMessage) -> UserMessage:
        try:
            db.add(message)
            await db.commit()
            await db.refresh(message)
        except Exception as e:
            await db.rollback()
            logger.error(f"메시지 저장 오류 (user={message.user_id}): {e}")
            raise
        return message

    async def get_messages(self, db: AsyncSession, user_id: int) -> List[UserMessage]:
        result = await db.execute(
            select(UserMessage)
            .where(UserMessage.user_id == user_id)
            .order_by(UserMessage.created_at.desc(), UserMessage.message_id.desc())
        )
        return list(result.scalars().all())

    async def count_unread(self, db: AsyncSession, user_id: int) -> int:
        result = await db.execute(
            select(func.count()).select_from(UserMessage)
            .where(UserMessage.user_id == user_id, UserMessage.is_read.is_(False))
        )
        return result.scalar() or 0

    async def get_user_message(self, db: AsyncSession, message_id: int, user_id: int) -> Optional[UserMessage]:
        message = await db.get(UserMessage, message_id)
        if message is None or message.user_id != user_id:
            return None
        return message

    async def mark_read(self, db: AsyncSession, message: UserMessage) -> UserMessage:
        try:
            message.is_read = True
            message.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(message)
        except Exception:
            await db.rollback()
            raise
        return message

    async def delete_message(self, db: AsyncSession, message: UserMessage) -> None:
        try:
            await db.delete(message)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
