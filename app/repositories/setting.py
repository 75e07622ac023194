import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.setting import SiteSetting
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class SettingRepository:
    """
    사이트 설정 key-value 저장소
    """

    async def get(self, db: AsyncSession, key: str) -> Optional[SiteSetting]:
        return await db.get(SiteSetting, key)

    async def get_value(self, db: AsyncSession, key: str, default: Any = None) -> Any:
        setting = await self.get(db, key)
        return setting.value if setting is not None else default

    async def upsert(self, db: AsyncSession, key: str, value: Any) -> SiteSetting:
        """
        설정 값을 저장합니다. (없으면 생성)
        """
        try:
            setting = await self.get(db, key)
            if setting is None:
                setting = SiteSetting(key=key, value=value)
                db.add(setting)
            else:
                setting.value = value
                setting.updated_at = utc_now_naive()

            await db.commit()
            await db.refresh(setting)
            return setting

        except Exception as e:
            await db.rollback()
            logger.error(f"설정 저장 오류 (key={key}): {e}")
            raise
