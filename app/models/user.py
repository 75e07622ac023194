from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from app.models.base import BaseModel
from app.utils.security import get_password_hash, verify_password as _verify


class User(BaseModel, table=True):
    """
    사용자 정보를 저장하는 테이블
    - JWT 인증 및 역할(Role) 기반 권한 관리
    - 비밀번호는 bcrypt 해시로 저장
    - role: 대표 역할 (하위 호환), roles: 부여된 전체 역할 id 목록
    """

    __tablename__ = "users"

    user_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="사용자 고유 ID",
        sa_column_kwargs={"autoincrement": True}
    )

    username: str = Field(
        max_length=20,
        nullable=False,
        description="사용자명 (로그인/표시용)",
        sa_column_kwargs={"unique": True}
    )

    email: str = Field(
        max_length=254,
        nullable=False,
        description="이메일 (로그인용)",
        sa_column_kwargs={"unique": True}
    )

    password_hash: str = Field(
        max_length=255,
        nullable=False,
        description="bcrypt로 해시된 비밀번호"
    )

    is_active: bool = Field(
        default=True,
        description="계정 활성화 여부 (False 시 로그인 불가)"
    )

    role: str = Field(
        default="user",
        max_length=64,
        description="대표 역할 id (owner, admin, user 또는 커스텀 역할)"
    )

    roles: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="부여된 역할 id 목록",
    )

    bio: Optional[str] = Field(default=None, max_length=1000)
    avatar: Optional[str] = Field(default=None, max_length=500)

    # -------------------- #
    # 비밀번호 관련 유틸리티
    # -------------------- #

    @classmethod
    def hash_password(cls, password: str) -> str:
        return get_password_hash(password)

    def verify_password(self, password: str) -> bool:
        return _verify(password, self.password_hash)

    # -------------------- #
    # 헬퍼 메서드
    # -------------------- #

    def role_ids(self) -> List[str]:
        """
        역할 id 목록 (roles가 비어 있으면 대표 role 사용)
        """
        if self.roles:
            return list(self.roles)
        return [self.role] if self.role else []

    def __repr__(self) -> str:
        return f"<User(id={self.user_id}, username='{self.username}', email='{self.email}')>"
