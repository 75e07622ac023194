"""
모든 응답에 보안 헤더 적용
"""
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.services.advanced_security import get_security_manager


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # 테스트에서 dependency_overrides 로 교체한 매니저도 그대로 사용
        provider = request.app.dependency_overrides.get(get_security_manager, get_security_manager)
        return provider().apply_security_headers(response)
