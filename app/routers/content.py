# routers/content.py
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.content import (ContactRequest, ContactResponse,
                                 PageContentResponse, PageContentUpdate)
from app.services.advanced_security import RequestContext, protected
from app.services.content_service import ContentService
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited
from app.utils.router_utils import parse_body, raise_for_error

router = APIRouter(prefix="/api", tags=["content"])
admin_limit = Depends(rate_limited("ADMIN"))

contact_gate = protected(
    rate_limit_type="GENERAL_API",
    require_honeypot=True,
    require_timing=True,
    allowed_methods=["POST"],
)

PAGE_TYPE = Query(..., min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")


def get_content_service() -> ContentService:
    return ContentService()


@router.get("/content", response_model=PageContentResponse, dependencies=[Depends(rate_limited("GENERAL_API"))])
async def get_content(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
    type: str = PAGE_TYPE,
):
    return await service.get_page(db, type)


@router.get(
    "/admin/content",
    response_model=PageContentResponse,
    dependencies=[admin_limit, Depends(require_permission("content.view", "content.edit"))],
)
async def admin_get_content(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
    type: str = PAGE_TYPE,
):
    return await service.get_page(db, type)


@router.put("/admin/content", response_model=PageContentResponse, dependencies=[admin_limit])
async def admin_update_content(
    req: PageContentUpdate,
    current_user: Annotated[User, Depends(require_permission("content.edit"))],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    page = await service.save_page(db, req.type, req.data, current_user.user_id)
    return PageContentResponse(type=page.type, data=page.data, updated_at=page.updated_at)


@router.post(
    "/content/contact/submit",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def submit_contact(
    ctx: Annotated[RequestContext, Depends(contact_gate)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    """
    문의하기 폼 제출 (honeypot + 작성 시간 검사)
    """
    data = parse_body(ContactRequest, ctx)
    contact, error = await service.submit_contact(db, data)
    if error:
        raise_for_error(error)
    return contact


@router.get(
    "/admin/contact",
    response_model=List[ContactResponse],
    dependencies=[admin_limit, Depends(require_permission("content.view", "content.edit"))],
)
async def admin_list_contacts(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[ContentService, Depends(get_content_service)],
):
    return await service.list_contacts(db)
