# utils/dependencies.py
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.database import get_session
from app.models.user import User
from app.repositories.user import UserRepository
from app.services.auth_service import AuthService
from app.services.user_service import UserService
from app.utils.security import decode_token

# Swagger에서 Authorize → 토큰만 입력해도 Bearer 자동으로 붙음
# 세션 쿠키로도 인증할 수 있으므로 auto_error 끔
auth_scheme = HTTPBearer(auto_error=False)


def get_user_service() -> UserService:
    """
    사용자 서비스 의존성 주입 (FastAPI Depends용)
    """
    return UserService()


async def get_auth_service(db: AsyncSession = Depends(get_session)) -> AuthService:
    """
    AuthService 의존성 주입용 팩토리 함수.
    """
    return AuthService(db)


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # 우선순위: Authorization Bearer > 세션 쿠키
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
    db: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """
    토큰이 있고 유효하면 사용자, 아니면 None
    """
    token = _extract_token(request, credentials)
    if not token:
        return None

    payload = decode_token(token)
    if not payload or payload.get("scope") != "access":
        return None

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        return None

    user = await UserRepository().get_by_email(db, sub)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    current_user: Optional[User] = Depends(get_optional_user),
) -> User:
    """
    JWT Access Token(헤더 또는 세션 쿠키)을 해독하고 현재 로그인한 사용자 반환
    """
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return current_user


def fake_admin_user() -> User:
    """
    SKIP_AUTH 개발 모드용 가짜 관리자
    """
    return User(
        user_id=0,
        username="dev",
        email="dev@example.com",
        password_hash="",
        role="admin",
        roles=["admin"],
    )
