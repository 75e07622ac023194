from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from app.models.base import BaseModel


class Role(BaseModel, table=True):
    """
    관리자 권한 역할
    - 시스템 역할(owner, admin, user)은 삭제 불가
    """

    __tablename__ = "roles"

    id: str = Field(
        primary_key=True,
        max_length=64,
        description="역할 id (시스템 역할은 고정 id, 그 외 uuid)",
    )

    name: str = Field(max_length=100, nullable=False, description="역할 이름")

    description: Optional[str] = Field(default=None, max_length=500)

    permissions: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="권한 id 목록",
    )

    is_system: bool = Field(default=False, description="시스템 역할 여부")
