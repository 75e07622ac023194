# app/utils/seed_data.py
"""
초기 데이터 시딩 유틸리티
- 앱 시작 시 자동으로 실행되어 시스템 역할(owner, admin, user)을 생성
- OWNER_EMAIL / OWNER_PASSWORD 가 설정되어 있으면 owner 계정 보장
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.user import User
from app.repositories.user import UserRepository
from app.services.permissions import SYSTEM_ROLES, PermissionService

logger = logging.getLogger(__name__)


async def ensure_owner(db: AsyncSession, email: str, password: Optional[str] = None) -> Optional[User]:
    """
    email 사용자를 owner 로 승격합니다. 없고 password 가 있으면 생성합니다.
    """
    repo = UserRepository()
    user = await repo.get_by_email(db, email)

    if user is None:
        if not password:
            logger.warning(f"owner 대상 사용자가 없습니다: {email}")
            return None
        username = email.split("@")[0][:20]
        user = await repo.create(db, {
            "username": username,
            "email": email,
            "password": password,
            "role": SYSTEM_ROLES.OWNER,
        })
        if user is None:
            raise RuntimeError(f"owner 계정 생성 실패: {email}")
        logger.info(f"owner 계정 생성: {email}")
        return user

    if SYSTEM_ROLES.OWNER not in user.role_ids():
        user = await PermissionService().assign_roles_to_user(
            db, user.user_id, [SYSTEM_ROLES.OWNER] + [r for r in user.role_ids() if r != SYSTEM_ROLES.USER]
        )
        logger.info(f"owner 역할 부여: {email}")
    return user


async def init_seed_data(db: AsyncSession) -> None:
    """앱 시작 시 자동으로 호출되어 전체 초기 데이터 시딩 수행"""
    try:
        await PermissionService().create_default_roles(db)
        if settings.OWNER_EMAIL:
            await ensure_owner(db, settings.OWNER_EMAIL, settings.OWNER_PASSWORD)
    except Exception as e:
        logger.error(f"초기 데이터 시딩 실패: {e}")
        raise
