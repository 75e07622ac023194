# routers/roles.py
from typing import Annotated, Dict, List

from fastapi import Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.user import User
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.role import (AssignRolesRequest, PermissionCheckResponse,
                              PermissionResponse, RoleCreateRequest,
                              RoleResponse, RoleUpdateRequest,
                              UserPermissionsResponse)
from app.schemas.user import UserResponse
from app.services.permissions import (PermissionService,
                                      get_permission_by_id,
                                      get_permission_service,
                                      get_permissions_by_category,
                                      require_permission)
from app.services.rate_limit import rate_limited
from app.utils.dependencies import get_current_user
from app.utils.router_utils import get_router, raise_for_error

router = get_router("admin", tags=["admin-roles"])
admin_limit = Depends(rate_limited("ADMIN"))


# -------------------- #
# 역할
# -------------------- #

@router.get(
    "/roles",
    response_model=List[RoleResponse],
    dependencies=[admin_limit, Depends(require_permission("roles.view"))],
)
async def list_roles(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    return await service.get_all_roles(db)


@router.post(
    "/roles",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "알 수 없는 권한 id"}},
    dependencies=[admin_limit, Depends(require_permission("roles.create"))],
)
async def create_role(
    req: RoleCreateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    unknown = [p for p in req.permissions if get_permission_by_id(p) is None]
    if unknown:
        raise_for_error(ErrorResponse(error="Unknown permissions", errors=unknown))
    return await service.create_role(db, req.name, req.description, req.permissions)


@router.post(
    "/roles/init",
    response_model=MessageResponse,
    dependencies=[admin_limit, Depends(require_permission("roles.create"))],
)
async def init_roles(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    created = await service.create_default_roles(db)
    return MessageResponse(message=f"Default roles initialized ({created} created)")


@router.get(
    "/roles/{role_id}",
    response_model=RoleResponse,
    dependencies=[admin_limit, Depends(require_permission("roles.view"))],
)
async def get_role(
    role_id: str,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    return await service.get_role(db, role_id)


@router.put(
    "/roles/{role_id}",
    response_model=RoleResponse,
    dependencies=[admin_limit, Depends(require_permission("roles.edit"))],
)
async def update_role(
    role_id: str,
    req: RoleUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    if req.permissions is not None:
        unknown = [p for p in req.permissions if get_permission_by_id(p) is None]
        if unknown:
            raise_for_error(ErrorResponse(error="Unknown permissions", errors=unknown))
    return await service.update_role(db, role_id, req.model_dump(exclude_unset=True))


@router.delete(
    "/roles/{role_id}",
    response_model=MessageResponse,
    responses={403: {"description": "시스템 역할"}, 404: {"description": "역할 없음"}},
    dependencies=[admin_limit, Depends(require_permission("roles.delete"))],
)
async def delete_role(
    role_id: str,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    await service.delete_role(db, role_id)
    return MessageResponse(message="Role deleted")


# -------------------- #
# 권한
# -------------------- #

@router.get(
    "/permissions",
    response_model=Dict[str, List[PermissionResponse]],
    dependencies=[admin_limit, Depends(require_permission("roles.view"))],
)
async def list_permissions():
    return {
        category: [p.to_dict() for p in permissions]
        for category, permissions in get_permissions_by_category().items()
    }


@router.get("/permissions/check", response_model=PermissionCheckResponse)
async def check_permission(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
    permission: str = Query(..., min_length=1),
):
    allowed = await service.check_permission(db, current_user.user_id, permission)
    return PermissionCheckResponse(permission=permission, has_permission=allowed)


@router.get("/permissions/user", response_model=UserPermissionsResponse)
async def current_user_permissions(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    return await service.get_user_role_and_permissions(db, current_user.user_id)


@router.put(
    "/users/{user_id}/roles",
    response_model=UserResponse,
    responses={404: {"description": "사용자 또는 역할 없음"}},
    dependencies=[admin_limit, Depends(require_permission("users.roles.assign"))],
)
async def assign_user_roles(
    user_id: int,
    req: AssignRolesRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[PermissionService, Depends(get_permission_service)],
):
    return await service.assign_roles_to_user(db, user_id, req.roles)
