"""
페이지 콘텐츠 / 문의하기 / 서버 규칙 서비스
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.content import ContactMessage, PageContent, Rule, RuleCategory
from app.repositories.content import ContentRepository
from app.schemas.common import ErrorResponse
from app.schemas.content import (ContactRequest, RuleCategoryRequest,
                                 RuleCategoryUpdate, RuleCategoryWithRules,
                                 RuleRequest, RuleResponse, RuleUpdate)
from app.utils.validation import (VALIDATION_RULES, sanitize_input,
                                  validate_field)

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "subject", "message")


class ContentService:

    def __init__(self, repository: Optional[ContentRepository] = None):
        self.repository = repository or ContentRepository()

    # -------------------- #
    # 페이지 콘텐츠
    # -------------------- #

    async def get_page(self, db: AsyncSession, type: str) -> Dict[str, Any]:
        page = await self.repository.get_page(db, type)
        if page is None:
            return {"type": type, "data": {}, "updated_at": None}
        return {"type": page.type, "data": page.data, "updated_at": page.updated_at}

    async def save_page(
        self, db: AsyncSession, type: str, data: Dict[str, Any], user_id: Optional[int]
    ) -> PageContent:
        return await self.repository.upsert_page(db, type, data, user_id)

    # -------------------- #
    # 문의하기
    # -------------------- #

    async def submit_contact(
        self, db: AsyncSession, data: ContactRequest
    ) -> tuple[Optional[ContactMessage], Optional[ErrorResponse]]:
        values = {name: getattr(data, name) for name in CONTACT_FIELDS}
        if any(not (v or "").strip() for v in values.values()):
            return None, ErrorResponse(error="All fields are required")

        errors: List[str] = []
        errors.extend(validate_field(values["email"], VALIDATION_RULES["email"], "email").errors)
        for name in ("name", "subject", "message"):
            errors.extend(validate_field(values[name], VALIDATION_RULES["general_text"], name).errors)
        if errors:
            return None, ErrorResponse(error="Validation failed", errors=errors)

        contact = ContactMessage(
            name=sanitize_input(values["name"])[:100],
            email=values["email"].strip(),
            subject=sanitize_input(values["subject"])[:200],
            message=sanitize_input(values["message"]),
        )
        contact = await self.repository.create_contact(db, contact)
        logger.info(f"문의 접수: {contact.contact_id} ({contact.email})")
        return contact, None

    async def list_contacts(self, db: AsyncSession) -> List[ContactMessage]:
        return await self.repository.get_contacts(db)

    # -------------------- #
    # 서버 규칙
    # -------------------- #

    async def get_rules_tree(self, db: AsyncSession) -> List[RuleCategoryWithRules]:
        """
        활성 카테고리 순서대로, 각 카테고리의 활성 규칙 포함
        """
        categories = await self.repository.get_rule_categories(db, active_only=True)
        rules = await self.repository.get_rules(db, active_only=True)

        grouped: Dict[int, List[Rule]] = {}
        for rule in rules:
            grouped.setdefault(rule.category_id, []).append(rule)

        return [
            RuleCategoryWithRules(
                category_id=category.category_id,
                name=category.name,
                sort_order=category.sort_order,
                is_active=category.is_active,
                rules=[RuleResponse.model_validate(r) for r in grouped.get(category.category_id, [])],
            )
            for category in categories
        ]

    async def list_rule_categories(self, db: AsyncSession, active_only: bool = True) -> List[RuleCategory]:
        return await self.repository.get_rule_categories(db, active_only=active_only)

    async def create_rule_category(
        self, db: AsyncSession, data: RuleCategoryRequest
    ) -> tuple[Optional[RuleCategory], Optional[ErrorResponse]]:
        if not data.name.en.strip():
            return None, ErrorResponse(error="Category name is required")
        category = RuleCategory(**data.model_dump())
        return await self.repository.save_rule_category(db, category), None

    async def update_rule_category(
        self, db: AsyncSession, category_id: int, data: RuleCategoryUpdate
    ) -> tuple[Optional[RuleCategory], Optional[ErrorResponse]]:
        category = await self.repository.get_rule_category(db, category_id)
        if category is None:
            return None, ErrorResponse(error="Category not found", status_code=404)

        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(category, key, value)
        return await self.repository.save_rule_category(db, category), None

    async def delete_rule_category(self, db: AsyncSession, category_id: int) -> Optional[ErrorResponse]:
        category = await self.repository.get_rule_category(db, category_id)
        if category is None:
            return ErrorResponse(error="Category not found", status_code=404)
        await self.repository.delete_rule_category(db, category)
        return None

    async def create_rule(
        self, db: AsyncSession, data: RuleRequest
    ) -> tuple[Optional[Rule], Optional[ErrorResponse]]:
        if await self.repository.get_rule_category(db, data.category_id) is None:
            return None, ErrorResponse(error="Category not found", status_code=404)
        if not data.title.en.strip() or not data.content.en.strip():
            return None, ErrorResponse(error="Rule title and content are required")

        rule = Rule(**data.model_dump())
        return await self.repository.save_rule(db, rule), None

    async def update_rule(
        self, db: AsyncSession, rule_id: int, data: RuleUpdate
    ) -> tuple[Optional[Rule], Optional[ErrorResponse]]:
        rule = await self.repository.get_rule(db, rule_id)
        if rule is None:
            return None, ErrorResponse(error="Rule not found", status_code=404)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("category_id") is not None:
            if await self.repository.get_rule_category(db, update_data["category_id"]) is None:
                return None, ErrorResponse(error="Category not found", status_code=404)

        for key, value in update_data.items():
            if value is not None:
                setattr(rule, key, value)
        return await self.repository.save_rule(db, rule), None

    async def delete_rule(self, db: AsyncSession, rule_id: int) -> Optional[ErrorResponse]:
        rule = await self.repository.get_rule(db, rule_id)
        if rule is None:
            return ErrorResponse(error="Rule not found", status_code=404)
        await self.repository.delete_rule(db, rule)
        return None
