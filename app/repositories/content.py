import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.content import ContactMessage, PageContent, Rule, RuleCategory
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class ContentRepository:
    """
    페이지 콘텐츠 / 문의 / 서버 규칙 저장소
    """

    async def _save(self, db: AsyncSession, obj, label: str):
        try:
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
        except Exception as e:
            await db.rollback()
            logger.error(f"{label} 저장 오류: {e}")
            raise
        return obj

    async def _delete(self, db: AsyncSession, obj, label: str) -> None:
        try:
            await db.delete(obj)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"{label} 삭제 오류: {e}")
            raise

    # -------------------- #
    # 페이지 콘텐츠
    # -------------------- #

    async def get_page(self, db: AsyncSession, type: str) -> Optional[PageContent]:
        return await db.get(PageContent, type)

    async def upsert_page(
        self, db: AsyncSession, type: str, data: Dict[str, Any], updated_by: Optional[int] = None
    ) -> PageContent:
        page = await db.get(PageContent, type)
        if page is None:
            page = PageContent(type=type)
        # JSON 컬럼은 변경 감지를 위해 새 dict 로 교체
        page.data = dict(data)
        page.updated_at = utc_now_naive()
        page.updated_by = updated_by
        page = await self._save(db, page, f"페이지 콘텐츠({type})")
        logger.info(f"페이지 콘텐츠 저장: {type} (by={updated_by})")
        return page

    # -------------------- #
    # 문의
    # -------------------- #

    async def create_contact(self, db: AsyncSession, contact: ContactMessage) -> ContactMessage:
        return await self._save(db, contact, "문의")

    async def get_contacts(self, db: AsyncSession) -> List[ContactMessage]:
        result = await db.execute(
            select(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.contact_id.desc())
        )
        return list(result.scalars().all())

    # -------------------- #
    # 서버 규칙
    # -------------------- #

    async def get_rule_categories(self, db: AsyncSession, active_only: bool = True) -> List[RuleCategory]:
        stmt = select(RuleCategory)
        if active_only:
            stmt = stmt.where(RuleCategory.is_active.is_(True))
        result = await db.execute(stmt.order_by(RuleCategory.sort_order, RuleCategory.category_id))
        return list(result.scalars().all())

    async def get_rule_category(self, db: AsyncSession, category_id: int) -> Optional[RuleCategory]:
        return await db.get(RuleCategory, category_id)

    async def get_rules(self, db: AsyncSession, active_only: bool = True) -> List[Rule]:
        stmt = select(Rule)
        if active_only:
            stmt = stmt.where(Rule.is_active.is_(True))
        result = await db.execute(stmt.order_by(Rule.sort_order, Rule.rule_id))
        return list(result.scalars().all())

    async def get_rule(self, db: AsyncSession, rule_id: int) -> Optional[Rule]:
        return await db.get(Rule, rule_id)

    async def save_rule_category(self, db: AsyncSession, category: RuleCategory) -> RuleCategory:
        category.updated_at = utc_now_naive()
        return await self._save(db, category, "규칙 카테고리")

    async def save_rule(self, db: AsyncSession, rule: Rule) -> Rule:
        rule.updated_at = utc_now_naive()
        return await self._save(db, rule, "규칙")

    async def delete_rule_category(self, db: AsyncSession, category: RuleCategory) -> None:
        """
        카테고리와 소속 규칙 함께 삭제
        """
        try:
            await db.execute(delete(Rule).where(Rule.category_id == category.category_id))
            await db.delete(category)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"규칙 카테고리 삭제 오류 (id={category.category_id}): {e}")
            raise
        logger.info(f"규칙 카테고리 삭제 완료: {category.category_id}")

    async def delete_rule(self, db: AsyncSession, rule: Rule) -> None:
        await self._delete(db, rule, f"규칙({rule.rule_id})")
