# routers/rules.py
from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.content import (RuleCategoryRequest, RuleCategoryResponse,
                                 RuleCategoryUpdate, RuleCategoryWithRules,
                                 RuleRequest, RuleResponse, RuleUpdate)
from app.services.content_service import ContentService
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited
from app.utils.router_utils import raise_for_error

router = APIRouter(prefix="/api", tags=["rules"])
public_limit = Depends(rate_limited("GENERAL_API"))
admin_limit = Depends(rate_limited("ADMIN"))
can_edit = Depends(require_permission("content.edit"))


def get_content_service() -> ContentService:
    return ContentService()


@router.get("/rules", response_model=List[RuleCategoryWithRules], dependencies=[public_limit])
async def get_rules(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    """
    활성 카테고리별 규칙 목록 (sort_order 순)
    """
    return await service.get_rules_tree(db)


@router.get("/rules/categories", response_model=List[RuleCategoryResponse], dependencies=[public_limit])
async def get_rule_categories(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    return await service.list_rule_categories(db)


# ----------------------------------------------------------------------
# 관리자: 카테고리 (/{rule_id} 경로보다 먼저 선언)
# ----------------------------------------------------------------------
@router.post(
    "/admin/rules/categories",
    response_model=RuleCategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def create_rule_category(
    req: RuleCategoryRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    category, error = await service.create_rule_category(db, req)
    if error:
        raise_for_error(error)
    return category


@router.put(
    "/admin/rules/categories/{category_id}",
    response_model=RuleCategoryResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def update_rule_category(
    category_id: int,
    req: RuleCategoryUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    category, error = await service.update_rule_category(db, category_id, req)
    if error:
        raise_for_error(error)
    return category


@router.delete(
    "/admin/rules/categories/{category_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def delete_rule_category(
    category_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    """
    카테고리와 소속 규칙을 함께 삭제
    """
    error = await service.delete_rule_category(db, category_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Category deleted successfully")


# ----------------------------------------------------------------------
# 관리자: 규칙
# ----------------------------------------------------------------------
@router.post(
    "/admin/rules",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def create_rule(
    req: RuleRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    rule, error = await service.create_rule(db, req)
    if error:
        raise_for_error(error)
    return rule


@router.put(
    "/admin/rules/{rule_id}",
    response_model=RuleResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def update_rule(
    rule_id: int,
    req: RuleUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    rule, error = await service.update_rule(db, rule_id, req)
    if error:
        raise_for_error(error)
    return rule


@router.delete(
    "/admin/rules/{rule_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[admin_limit, can_edit],
)
async def delete_rule(
    rule_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    error = await service.delete_rule(db, rule_id)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Rule deleted successfully")
