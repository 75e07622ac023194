"""
점검 모드 미들웨어
점검 중에는 허용 경로 외 요청을 503 으로 응답한다.
"""
import logging
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.services.maintenance import get_maintenance_service, is_allowed_path

logger = logging.getLogger(__name__)


class MaintenanceMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        provider = request.app.dependency_overrides.get(get_maintenance_service, get_maintenance_service)
        path = request.url.path

        if provider().is_enabled() and not is_allowed_path(path):
            logger.info(f"Maintenance mode active, rejecting {request.method} {path}")
            return JSONResponse(
                status_code=503,
                content={"error": "Service under maintenance", "maintenanceMode": True},
            )

        return await call_next(request)
