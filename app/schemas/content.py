from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.content import ContactStatus
from app.schemas.store import BilingualText


class PageContentResponse(BaseModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class PageContentUpdate(BaseModel):
    type: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    data: Dict[str, Any]


class ContactRequest(BaseModel):
    """
    문의하기 폼 (honeypot hp_* 필드와 formStartTime 허용)
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""
    form_start_time: Optional[float] = Field(None, alias="formStartTime")


class ContactResponse(BaseModel):
    contact_id: int
    name: str
    email: str
    subject: str
    message: str
    status: ContactStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# -------------------- #
# 서버 규칙
# -------------------- #

class RuleCategoryRequest(BaseModel):
    name: BilingualText
    sort_order: int = 0
    is_active: bool = True


class RuleCategoryUpdate(BaseModel):
    name: Optional[BilingualText] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class RuleRequest(BaseModel):
    category_id: int
    title: BilingualText
    content: BilingualText
    sort_order: int = 0
    is_active: bool = True


class RuleUpdate(BaseModel):
    category_id: Optional[int] = None
    title: Optional[BilingualText] = None
    content: Optional[BilingualText] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class RuleResponse(BaseModel):
    rule_id: int
    category_id: int
    title: Dict[str, str]
    content: Dict[str, str]
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True


class RuleCategoryResponse(BaseModel):
    category_id: int
    name: Dict[str, str]
    sort_order: int
    is_active: bool

    class Config:
        from_attributes = True


class RuleCategoryWithRules(RuleCategoryResponse):
    rules: List[RuleResponse] = Field(default_factory=list)
