from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel

from app.models.base import BaseModel
from app.utils.datetime import utc_now_naive


class PageContent(SQLModel, table=True):
    """
    정적 페이지 콘텐츠 (type 별 JSON 문서 하나)
    """

    __tablename__ = "page_contents"

    type: str = Field(primary_key=True, max_length=50)

    data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
    )

    updated_at: datetime = Field(
        default_factory=utc_now_naive,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )

    updated_by: Optional[int] = Field(default=None)


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"


class ContactMessage(BaseModel, table=True):
    """
    문의하기 폼 제출 내역
    """

    __tablename__ = "contact_messages"

    contact_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    name: str = Field(max_length=100, nullable=False)
    email: str = Field(max_length=254, nullable=False)
    subject: str = Field(max_length=200, nullable=False)
    message: str = Field(max_length=1000, nullable=False)

    status: ContactStatus = Field(default=ContactStatus.NEW)


class RuleCategory(BaseModel, table=True):
    """
    서버 규칙 카테고리
    """

    __tablename__ = "rule_categories"

    category_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    name: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    sort_order: int = Field(default=0)

    is_active: bool = Field(default=True)


class Rule(BaseModel, table=True):
    """
    서버 규칙 (title / content 다국어 JSON)
    """

    __tablename__ = "rules"

    rule_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    category_id: int = Field(foreign_key="rule_categories.category_id", nullable=False, index=True)

    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    content: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    sort_order: int = Field(default=0)

    is_active: bool = Field(default=True)
