# services/auth_service.py
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user import UserRepository
from app.schemas.auth import RegisterRequest
from app.schemas.common import ErrorResponse
from app.schemas.user import UserResponse
from app.utils.security import (create_access_token, create_refresh_token,
                                decode_token, verify_password)
from app.utils.validation import VALIDATION_RULES, validate_fields

logger = logging.getLogger(__name__)


class AuthService:
    """
    회원가입 및 JWT 기반 인증 로직 담당
    """

    def __init__(self, db: AsyncSession, user_repo: Optional[UserRepository] = None):
        self.db = db
        self.user_repo = user_repo or UserRepository()

    async def register(
        self, data: RegisterRequest
    ) -> tuple[Optional[UserResponse], Optional[ErrorResponse]]:
        """
        회원가입 처리

        Returns:
            성공 시: (UserResponse, None)
            실패 시: (None, ErrorResponse)  status_code 400(검증) / 409(중복)
        """
        result = validate_fields(
            {
                "username": (data.username, VALIDATION_RULES["username"]),
                "email": (data.email, VALIDATION_RULES["email"]),
                "password": (data.password, VALIDATION_RULES["password"]),
            },
            context={"email": data.email},
        )
        errors = list(result.errors)
        if data.password != data.confirm_password:
            errors.append("Passwords do not match")

        if errors:
            return None, ErrorResponse(error="Validation failed", errors=errors, status_code=400)

        if await self.user_repo.get_by_email(self.db, data.email):
            logger.warning(f"이메일 중복 가입 시도: {data.email}")
            return None, ErrorResponse(error="Email already in use", status_code=409)

        if await self.user_repo.get_by_username(self.db, data.username):
            logger.warning(f"사용자명 중복 가입 시도: {data.username}")
            return None, ErrorResponse(error="Username already in use", status_code=409)

        user = await self.user_repo.create(self.db, {
            "username": data.username,
            "email": data.email,
            "password": data.password,
        })
        if not user:
            return None, ErrorResponse(
                error="An error occurred during registration",
                detail="데이터베이스 오류가 발생했습니다.",
                status_code=500,
            )

        logger.info(f"회원가입 완료: {user.email}")
        return UserResponse.model_validate(user), None

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        이메일/비밀번호 확인 (실패 시 None)
        """
        user: User | None = await self.user_repo.get_by_email(self.db, email)
        if not user:
            logger.warning(f"Login failed: user not found ({email})")
            return None

        if not user.is_active:
            logger.warning(f"Login failed: inactive user ({email})")
            return None

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password ({email})")
            return None

        return user

    def issue_tokens(self, user: User) -> tuple[str, str]:
        access_token = create_access_token(sub=user.email, role=user.role)
        refresh_token = create_refresh_token(sub=user.email)
        return access_token, refresh_token

    async def refresh(self, refresh_token: str) -> tuple[str, str]:
        """
        Refresh Token을 검증하고 새로운 Access/Refresh Token 발급
        """
        payload = decode_token(refresh_token)
        if not payload or payload.get("scope") != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token",
            )

        email = payload.get("sub")
        user = await self.user_repo.get_by_email(self.db, email) if isinstance(email, str) else None
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
            )

        logger.info(f"Token refreshed for {user.email}")
        return self.issue_tokens(user)
