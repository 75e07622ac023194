# routers/user.py
from typing import Annotated

from fastapi import Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.schemas import (ErrorResponse, UserListResponse, UserResponse,
                         UserUpdateRequest)
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited
from app.services.user_service import UserService
from app.utils.dependencies import get_user_service
from app.utils.router_utils import get_router, raise_for_error

# 관리자 사용자 관리 라우터
router = get_router("admin/users", tags=["admin-users"])
admin_limit = Depends(rate_limited("ADMIN"))


@router.get(
    "",
    response_model=UserListResponse,
    summary="사용자 목록 조회",
    dependencies=[admin_limit, Depends(require_permission("users.view"))],
)
async def get_users(
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
    skip: int = 0,
    limit: int = 100,
):
    """
    - **skip**: 건너뛸 레코드 수 (기본값: 0)
    - **limit**: 조회할 최대 레코드 수 (기본값: 100)
    """
    user_list_response, error = await service.get_all_users(db, skip, limit)
    if error:
        raise_for_error(error)
    return user_list_response


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="사용자 조회",
    responses={404: {"model": ErrorResponse, "description": "사용자를 찾을 수 없음"}},
    dependencies=[admin_limit, Depends(require_permission("users.view"))],
)
async def get_user(
    user_id: int,
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    user_response, error = await service.get_user_by_id(db, user_id)
    if error:
        raise_for_error(error)
    return user_response


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="사용자 정보 수정",
    responses={
        404: {"model": ErrorResponse, "description": "사용자를 찾을 수 없음"},
        409: {"model": ErrorResponse, "description": "이미 사용 중인 이메일/사용자명"},
    },
    dependencies=[admin_limit, Depends(require_permission("users.edit"))],
)
async def update_user(
    user_id: int,
    update_data: UserUpdateRequest,
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    user_response, error = await service.update_user(db, user_id, update_data)
    if error:
        raise_for_error(error)
    return user_response


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="사용자 삭제",
    responses={404: {"model": ErrorResponse, "description": "사용자를 찾을 수 없음"}},
    dependencies=[admin_limit, Depends(require_permission("users.delete"))],
)
async def delete_user(
    user_id: int,
    service: Annotated[UserService, Depends(get_user_service)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    error = await service.delete_user(db, user_id)
    if error:
        raise_for_error(error)
    return None
