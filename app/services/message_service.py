# services/message_service.py
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import MessageType, UserMessage
from app.repositories.order import OrderRepository
from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class MessageService:
    """
    사용자 알림 메시지 (주문 알림 등)
    """

    def __init__(self, repository: Optional[OrderRepository] = None):
        self.repository = repository or OrderRepository()

    async def send(
        self,
        db: AsyncSession,
        user_id: int,
        title: str,
        content: str,
        type: MessageType = MessageType.ORDER,
        order_id: Optional[str] = None,
    ) -> Optional[UserMessage]:
        """
        알림 저장 실패는 주문 흐름을 막지 않도록 로그만 남김
        """
        try:
            return await self.repository.create_message(
                db, UserMessage(user_id=user_id, title=title, content=content, type=type, order_id=order_id)
            )
        except Exception as e:
            logger.error(f"알림 메시지 저장 실패 (user={user_id}, title={title}): {e}")
            return None

    async def list_messages(self, db: AsyncSession, user_id: int) -> List[UserMessage]:
        return await self.repository.get_messages(db, user_id)

    async def count_unread(self, db: AsyncSession, user_id: int) -> int:
        return await self.repository.count_unread(db, user_id)

    async def mark_read(
        self, db: AsyncSession, user_id: int, message_id: int
    ) -> tuple[Optional[UserMessage], Optional[ErrorResponse]]:
        message = await self.repository.get_user_message(db, message_id, user_id)
        if message is None:
            return None, ErrorResponse(error="Message not found", status_code=404)
        return await self.repository.mark_read(db, message), None

    async def delete(self, db: AsyncSession, user_id: int, message_id: int) -> Optional[ErrorResponse]:
        message = await self.repository.get_user_message(db, message_id, user_id)
        if message is None:
            return ErrorResponse(error="Message not found", status_code=404)
        await self.repository.delete_message(db, message)
        return None
