"""
컨트롤러 모듈

API 엔드포인트들을 정의합니다.
외부 HTTP 요청을 직접 받는 엔드포인트입니다.
요청을 받아 적절한 서비스로 라우팅합니다.
"""

from .admin_security import router as admin_security_router
from .auth import router as auth_router
from .content import router as content_router
from .coupons import router as coupons_router
from .jobs import router as jobs_router
from .maintenance import router as maintenance_router
from .orders import router as orders_router
from .payment import router as payment_router
from .profile import router as profile_router
from .roles import router as roles_router
from .rules import router as rules_router
from .store import router as store_router
from .user import router as user_router

__all__ = [
    "auth_router",
    "user_router",
    "profile_router",
    "admin_security_router",
    "roles_router",
    "maintenance_router",
    "jobs_router",
    "store_router",
    "coupons_router",
    "orders_router",
    "payment_router",
    "content_router",
    "rules_router",
]
