from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import Field

from app.models.base import BaseModel


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Job(BaseModel, table=True):
    """
    채용 공고
    - title / description 은 {"en": ..., "ar": ...} 다국어 JSON
    - form_fields 가 있으면 지원서는 해당 커스텀 필드로 검증
    """

    __tablename__ = "jobs"

    job_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    title: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    description: Dict[str, str] = Field(sa_column=Column(JSON, nullable=False))

    category: Optional[str] = Field(default=None, max_length=100)

    requirements: List[Dict[str, str]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
    )

    is_open: bool = Field(default=True, description="지원 가능 여부")

    is_featured: bool = Field(default=False)

    form_fields: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list),
        description="커스텀 지원서 필드 (type, label, required, options)",
    )


class JobApplication(BaseModel, table=True):
    """
    채용 지원서
    """

    __tablename__ = "job_applications"

    application_id: Optional[int] = Field(
        default=None,
        primary_key=True,
        sa_column_kwargs={"autoincrement": True},
    )

    job_id: int = Field(foreign_key="jobs.job_id", nullable=False, index=True)

    user_id: Optional[int] = Field(default=None, foreign_key="users.user_id", index=True)

    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=254)
    discord: Optional[str] = Field(default=None, max_length=100)
    experience: Optional[str] = Field(default=None, max_length=1000)
    why_join: Optional[str] = Field(default=None, max_length=1000)
    availability: Optional[str] = Field(default=None, max_length=1000)

    answers: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False, default=dict),
        description="커스텀 필드 응답",
    )

    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING)
