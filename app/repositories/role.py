import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.role import Role
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class RoleRepository:
    """
    역할(Role) 저장소
    """

    async def get(self, db: AsyncSession, role_id: str) -> Optional[Role]:
        return await db.get(Role, role_id)

    async def get_all(self, db: AsyncSession) -> List[Role]:
        result = await db.execute(select(Role).order_by(Role.created_at.desc()))
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, role: Role) -> Role:
        try:
            db.add(role)
            await db.commit()
            await db.refresh(role)
        except Exception as e:
            await db.rollback()
            logger.error(f"역할 생성 오류 (id={role.id}): {e}")
            raise

        logger.info(f"역할 생성 완료: {role.id} ({role.name})")
        return role

    async def update(self, db: AsyncSession, role: Role, update_data: dict) -> Role:
        """
        허용 필드: name, description, permissions
        """
        try:
            for key in ("name", "description", "permissions"):
                if key in update_data and update_data[key] is not None:
                    value = update_data[key]
                    setattr(role, key, list(value) if key == "permissions" else value)
            role.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(role)
        except Exception as e:
            await db.rollback()
            logger.error(f"역할 수정 오류 (id={role.id}): {e}")
            raise

        return role

    async def delete(self, db: AsyncSession, role: Role) -> None:
        try:
            await db.delete(role)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"역할 삭제 오류 (id={role.id}): {e}")
            raise

        logger.info(f"역할 삭제 완료: {role.id}")
