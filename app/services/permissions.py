"""
역할 기반 권한 관리
- BUILT_IN_PERMISSIONS: 고정 권한 목록 (id 는 "store.products.edit" 형태)
- owner / admin 역할은 모든 권한, user 역할은 권한 없음
- 커스텀 역할은 permissions 목록으로 권한 부여
"""
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (RoleNotFoundError, SystemRoleError,
                                 UserNotFoundError)
from app.database import get_session
from app.models.role import Role
from app.models.user import User
from app.repositories.role import RoleRepository
from app.repositories.user import UserRepository
from app.utils.dependencies import get_optional_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Permission:
    id: str
    name: str
    description: str
    category: str

    def to_dict(self) -> dict:
        return asdict(self)


def _p(id: str, name: str, description: str, category: str) -> Permission:
    return Permission(id=id, name=name, description=description, category=category)


BUILT_IN_PERMISSIONS: List[Permission] = [
    _p("dashboard.view", "View Dashboard", "Access the admin dashboard", "Dashboard"),

    _p("store.view", "View Store", "View store settings", "Store"),
    _p("store.products.view", "View Products", "View products list", "Store"),
    _p("store.products.create", "Create Products", "Create new products", "Store"),
    _p("store.products.edit", "Edit Products", "Edit existing products", "Store"),
    _p("store.products.delete", "Delete Products", "Delete products", "Store"),
    _p("store.categories.view", "View Categories", "View categories", "Store"),
    _p("store.categories.manage", "Manage Categories", "Create, edit, delete categories", "Store"),
    _p("store.coupons.view", "View Coupons", "View coupons", "Store"),
    _p("store.coupons.manage", "Manage Coupons", "Create, edit, delete coupons", "Store"),

    _p("orders.view", "View Orders", "View all orders", "Orders"),
    _p("orders.edit", "Edit Orders", "Edit order status", "Orders"),
    _p("orders.delete", "Delete Orders", "Delete orders", "Orders"),

    _p("jobs.view", "View Jobs", "View job listings", "Jobs"),
    _p("jobs.create", "Create Jobs", "Create new job postings", "Jobs"),
    _p("jobs.edit", "Edit Jobs", "Edit job postings", "Jobs"),
    _p("jobs.delete", "Delete Jobs", "Delete job postings", "Jobs"),
    _p("jobs.applications.view", "View Applications", "View job applications", "Jobs"),
    _p("jobs.applications.manage", "Manage Applications", "Approve/reject applications", "Jobs"),

    _p("users.view", "View Users", "View user list", "Users"),
    _p("users.edit", "Edit Users", "Edit user information", "Users"),
    _p("users.delete", "Delete Users", "Delete users", "Users"),
    _p("users.roles.assign", "Assign Roles", "Assign roles to users", "Users"),

    _p("roles.view", "View Roles", "View roles and permissions", "Roles"),
    _p("roles.create", "Create Roles", "Create new roles", "Roles"),
    _p("roles.edit", "Edit Roles", "Edit roles and permissions", "Roles"),
    _p("roles.delete", "Delete Roles", "Delete roles", "Roles"),

    _p("content.view", "View Content", "View content pages", "Content"),
    _p("content.edit", "Edit Content", "Edit content pages", "Content"),
    _p("content.translations", "Manage Translations", "Manage translations", "Content"),

    _p("security.view", "View Security", "View security logs", "Security"),
    _p("security.manage", "Manage Security", "Manage security settings", "Security"),

    _p("logs.view", "View Logs", "View application logs", "Logs"),
    _p("logs.delete", "Delete Logs", "Delete logs", "Logs"),

    _p("settings.view", "View Settings", "View site settings", "Settings"),
    _p("settings.edit", "Edit Settings", "Edit site settings", "Settings"),

    _p("maintenance.view", "View Maintenance", "View maintenance mode", "Maintenance"),
    _p("maintenance.manage", "Manage Maintenance", "Enable/disable maintenance mode", "Maintenance"),
]


class SYSTEM_ROLES:
    OWNER = "owner"
    ADMIN = "admin"
    USER = "user"


ALL_PERMISSION_IDS: List[str] = [p.id for p in BUILT_IN_PERMISSIONS]

DEFAULT_ROLES = [
    {"id": SYSTEM_ROLES.OWNER, "name": "Owner", "description": "Full access to everything",
     "permissions": ALL_PERMISSION_IDS},
    {"id": SYSTEM_ROLES.ADMIN, "name": "Admin", "description": "Administrative access",
     "permissions": ALL_PERMISSION_IDS},
    {"id": SYSTEM_ROLES.USER, "name": "User", "description": "Regular user",
     "permissions": []},
]


def get_all_permissions() -> List[Permission]:
    return BUILT_IN_PERMISSIONS


def get_permission_by_id(permission_id: str) -> Optional[Permission]:
    return next((p for p in BUILT_IN_PERMISSIONS if p.id == permission_id), None)


def get_permissions_by_category() -> Dict[str, List[Permission]]:
    grouped: Dict[str, List[Permission]] = {}
    for permission in BUILT_IN_PERMISSIONS:
        grouped.setdefault(permission.category, []).append(permission)
    return grouped


def has_permission(user_permissions: Iterable[str], permission_id: str) -> bool:
    return permission_id in set(user_permissions)


def has_any_permission(user_permissions: Iterable[str], permission_ids: Iterable[str]) -> bool:
    owned = set(user_permissions)
    return any(p in owned for p in permission_ids)


def has_all_permissions(user_permissions: Iterable[str], permission_ids: Iterable[str]) -> bool:
    owned = set(user_permissions)
    return all(p in owned for p in permission_ids)


class PermissionService:
    """
    역할 CRUD 및 사용자 권한 계산
    """

    def __init__(self, role_repository: Optional[RoleRepository] = None,
                 user_repository: Optional[UserRepository] = None):
        self.role_repository = role_repository or RoleRepository()
        self.user_repository = user_repository or UserRepository()

    # -------------------- #
    # 역할
    # -------------------- #

    async def create_default_roles(self, db: AsyncSession) -> int:
        """
        시스템 역할(owner, admin, user) 생성. 이미 있으면 건너뜀

        Returns:
            새로 생성된 역할 수
        """
        created = 0
        for data in DEFAULT_ROLES:
            if await self.role_repository.get(db, data["id"]) is not None:
                continue
            await self.role_repository.create(db, Role(
                id=data["id"],
                name=data["name"],
                description=data["description"],
                permissions=list(data["permissions"]),
                is_system=True,
            ))
            created += 1

        if created:
            logger.info(f"기본 역할 생성: {created}개")
        return created

    async def get_all_roles(self, db: AsyncSession) -> List[Role]:
        return await self.role_repository.get_all(db)

    async def get_role(self, db: AsyncSession, role_id: str) -> Role:
        role = await self.role_repository.get(db, role_id)
        if role is None:
            raise RoleNotFoundError(role_id)
        return role

    async def create_role(self, db: AsyncSession, name: str, description: Optional[str] = None,
                          permissions: Optional[List[str]] = None) -> Role:
        role = Role(
            id=uuid.uuid4().hex,
            name=name,
            description=description,
            permissions=list(permissions or []),
            is_system=False,
        )
        return await self.role_repository.create(db, role)

    async def update_role(self, db: AsyncSession, role_id: str, update_data: dict) -> Role:
        role = await self.get_role(db, role_id)
        return await self.role_repository.update(db, role, update_data)

    async def delete_role(self, db: AsyncSession, role_id: str) -> bool:
        """
        Raises:
            RoleNotFoundError: 역할이 없는 경우
            SystemRoleError: 시스템 역할 삭제 시도
        """
        role = await self.get_role(db, role_id)
        if role.is_system:
            raise SystemRoleError(role_id)
        await self.role_repository.delete(db, role)
        return True

    # -------------------- #
    # 사용자 권한
    # -------------------- #

    async def _get_user(self, db: AsyncSession, user_id: int) -> User:
        user = await self.user_repository.get_by_id(db, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def permissions_for_user(self, db: AsyncSession, user: User) -> List[str]:
        role_ids = user.role_ids()

        if SYSTEM_ROLES.OWNER in role_ids or SYSTEM_ROLES.ADMIN in role_ids:
            return list(ALL_PERMISSION_IDS)

        collected: List[str] = []
        for role_id in role_ids:
            if role_id == SYSTEM_ROLES.USER:
                continue
            role = await self.role_repository.get(db, role_id)
            if role is None:
                continue
            for permission in role.permissions:
                if permission not in collected:
                    collected.append(permission)
        return collected

    async def get_user_permissions(self, db: AsyncSession, user_id: int) -> List[str]:
        user = await self.user_repository.get_by_id(db, user_id)
        if user is None:
            return []
        return await self.permissions_for_user(db, user)

    async def check_permission(self, db: AsyncSession, user_id: int, permission_id: str) -> bool:
        return has_permission(await self.get_user_permissions(db, user_id), permission_id)

    async def check_any_permission(self, db: AsyncSession, user_id: int, permission_ids: List[str]) -> bool:
        return has_any_permission(await self.get_user_permissions(db, user_id), permission_ids)

    async def get_user_role_and_permissions(self, db: AsyncSession, user_id: int) -> dict:
        user = await self.user_repository.get_by_id(db, user_id)
        if user is None:
            return {"role": SYSTEM_ROLES.USER, "permissions": []}
        return {
            "role": user.role or SYSTEM_ROLES.USER,
            "permissions": await self.permissions_for_user(db, user),
        }

    async def assign_roles_to_user(self, db: AsyncSession, user_id: int, role_ids: List[str]) -> User:
        """
        사용자 역할을 통째로 교체 (모든 역할이 존재해야 함)
        """
        for role_id in role_ids:
            await self.get_role(db, role_id)
        user = await self._get_user(db, user_id)
        return await self.user_repository.set_roles(db, user, role_ids)

    async def add_role_to_user(self, db: AsyncSession, user_id: int, role_id: str) -> User:
        await self.get_role(db, role_id)
        user = await self._get_user(db, user_id)

        current = user.role_ids()
        if role_id in current:
            return user
        return await self.user_repository.set_roles(db, user, current + [role_id])

    async def remove_role_from_user(self, db: AsyncSession, user_id: int, role_id: str) -> User:
        user = await self._get_user(db, user_id)

        remaining = [r for r in user.role_ids() if r != role_id]
        # 최소 하나의 역할은 유지
        if not remaining:
            remaining = [SYSTEM_ROLES.USER]
        return await self.user_repository.set_roles(db, user, remaining)


def get_permission_service() -> PermissionService:
    """
    PermissionService 의존성 주입 (FastAPI Depends용)
    """
    return PermissionService()


def require_permission(*permission_ids: str):
    """
    권한 검사 의존성 팩토리 (나열된 권한 중 하나라도 있으면 통과)

    Usage:
        @router.get("/", dependencies=[Depends(require_permission("users.view"))])
    """
    async def _dependency(
        current_user: Optional[User] = Depends(get_optional_user),
        db: AsyncSession = Depends(get_session),
        service: PermissionService = Depends(get_permission_service),
    ) -> User:
        if current_user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

        permissions = await service.permissions_for_user(db, current_user)
        if not has_any_permission(permissions, permission_ids):
            logger.warning(
                f"권한 부족: user={current_user.user_id} required={list(permission_ids)}"
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

        return current_user

    return _dependency
