# routers/profile.py
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (PasswordChangeRequest, ProfileUpdateRequest,
                              ProfileUpdateResponse, UserResponse)
from app.services.advanced_security import RequestContext, protected
from app.services.rate_limit import rate_limited
from app.services.user_service import UserService
from app.utils.dependencies import get_current_user, get_user_service
from app.utils.router_utils import get_router, parse_body, raise_for_error

# 로그인 사용자 본인 계정 라우터
router = get_router("user", tags=["profile"])
user_limit = Depends(rate_limited("GENERAL_API"))

# 비밀번호 변경은 PASSWORD_RESET 규칙 (IP당 1시간 3회)
password_gate = protected(
    rate_limit_type="PASSWORD_RESET",
    allowed_methods=["PUT"],
    require_auth=True,
)


@router.get("/profile", response_model=UserResponse, dependencies=[user_limit])
async def get_profile(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user


@router.put(
    "/profile",
    response_model=ProfileUpdateResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[user_limit],
)
async def update_profile(
    req: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    response, error = await service.update_profile(db, current_user, req)
    if error:
        raise_for_error(error)
    return response


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 429: {"description": "요청 횟수 초과"}},
)
async def change_password(
    ctx: Annotated[RequestContext, Depends(password_gate)],
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    data = parse_body(PasswordChangeRequest, ctx)
    error = await service.change_password(db, current_user, data)
    if error:
        raise_for_error(error)
    return MessageResponse(message="Password updated successfully")
