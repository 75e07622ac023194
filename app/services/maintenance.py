"""
점검 모드(maintenance mode)
- 프로세스 메모리 플래그 + site_settings 의 maintenanceMode 값
- 점검 중에는 관리자/인증/점검 관련 경로만 허용
"""
import logging
from typing import Callable, Optional

from app.core.exceptions import MaintenanceUpdateError
from app.repositories.setting import SettingRepository

logger = logging.getLogger(__name__)

MAINTENANCE_KEY = "maintenanceMode"

ALLOWED_PREFIXES = ("/admin", "/api/admin", "/api/auth", "/api/docs")

ALLOWED_PATHS = {
    "/login",
    "/maintenance",
    "/api/maintenance",
    "/openapi.json",
}


def is_allowed_path(path: str) -> bool:
    """
    점검 모드에서도 접근 가능한 경로인지 확인
    """
    if path.startswith(ALLOWED_PREFIXES):
        return True
    return path in ALLOWED_PATHS


class MaintenanceService:

    def __init__(self, session_factory: Optional[Callable] = None, repository: Optional[SettingRepository] = None):
        self._enabled = False
        self.session_factory = session_factory
        self.repository = repository or SettingRepository()

    def _session(self):
        if self.session_factory is not None:
            return self.session_factory()
        from app.database import get_async_session_context
        return get_async_session_context()

    def is_enabled(self) -> bool:
        return self._enabled

    async def load_from_db(self) -> bool:
        """
        DB 값으로 플래그를 맞춘다. 설정이 없으면 false 로 생성.
        조회 실패 시 현재 값을 유지한다.
        """
        try:
            async with self._session() as db:
                setting = await self.repository.get(db, MAINTENANCE_KEY)
                if setting is None:
                    await self.repository.upsert(db, MAINTENANCE_KEY, False)
                    self._enabled = False
                else:
                    self._enabled = setting.value is True
        except Exception as e:
            logger.error(f"점검 모드 로드 오류: {e}")
        return self._enabled

    async def _persist(self, enabled: bool) -> None:
        async with self._session() as db:
            await self.repository.upsert(db, MAINTENANCE_KEY, enabled)

    async def enable(self) -> bool:
        try:
            await self._persist(True)
            self._enabled = True
        except Exception as e:
            logger.error(f"점검 모드 활성화 오류: {e}")
        return self._enabled

    async def disable(self) -> bool:
        try:
            await self._persist(False)
            self._enabled = False
        except Exception as e:
            logger.error(f"점검 모드 비활성화 오류: {e}")
        return self._enabled

    async def toggle(self) -> bool:
        """
        Raises:
            MaintenanceUpdateError: DB 저장 실패 시
        """
        new_state = not self._enabled
        try:
            await self._persist(new_state)
        except Exception as e:
            logger.error(f"점검 모드 전환 오류: {e}")
            raise MaintenanceUpdateError() from e

        self._enabled = new_state
        logger.info(f"Maintenance mode {'enabled' if new_state else 'disabled'}")
        return self._enabled


# 싱글톤 인스턴스
_maintenance_service: Optional[MaintenanceService] = None


def get_maintenance_service() -> MaintenanceService:
    global _maintenance_service
    if _maintenance_service is None:
        _maintenance_service = MaintenanceService()
    return _maintenance_service
