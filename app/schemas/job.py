from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.models.job import ApplicationStatus


class LocalizedText(BaseModel):
    en: str = Field(..., min_length=1)
    ar: str = ""


class FormField(BaseModel):
    """
    커스텀 지원서 필드 (응답 키는 field_<영문 라벨>)
    """
    label: LocalizedText
    type: str = "text"
    required: bool = False
    options: List[str] = Field(default_factory=list)


class JobCreateRequest(BaseModel):
    title: LocalizedText
    description: LocalizedText
    category: Optional[str] = None
    requirements: List[LocalizedText] = Field(default_factory=list)
    is_open: bool = True
    is_featured: bool = False
    form_fields: List[FormField] = Field(default_factory=list)


class JobResponse(BaseModel):
    job_id: int
    title: Dict[str, str]
    description: Dict[str, str]
    category: Optional[str] = None
    requirements: List[Dict[str, str]] = Field(default_factory=list)
    is_open: bool
    is_featured: bool
    form_fields: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplicationRequest(BaseModel):
    """
    채용 지원서 (표준 필드 또는 field_* 커스텀 필드)
    """
    job_id: int = Field(..., alias="jobId")
    name: Optional[str] = None
    email: Optional[str] = None
    discord: Optional[str] = None
    experience: Optional[str] = None
    why_join: Optional[str] = Field(None, alias="whyJoin")
    availability: Optional[str] = None
    form_start_time: Optional[float] = Field(None, alias="formStartTime")

    class Config:
        populate_by_name = True
        extra = "allow"


class ApplicationResponse(BaseModel):
    application_id: int
    job_id: int
    user_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    discord: Optional[str] = None
    experience: Optional[str] = None
    why_join: Optional[str] = None
    availability: Optional[str] = None
    answers: Dict[str, Any] = Field(default_factory=dict)
    status: ApplicationStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
