from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserUpdateRequest(BaseModel):
    """
    사용자 정보 수정 요청 스키마 (관리자)
    """
    username: Optional[str] = Field(None, min_length=3, max_length=20, description="사용자명")
    email: Optional[EmailStr] = Field(None, description="이메일 주소")
    bio: Optional[str] = Field(None, max_length=1000)
    avatar: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    class Config:
        json_schema_extra = {
            "example": {
                "username": "new_name",
                "bio": "Hello"
            }
        }


class UserResponse(BaseModel):
    """
    사용자 정보 응답 스키마
    """
    user_id: int = Field(..., description="사용자 ID")
    username: str = Field(..., description="사용자명")
    email: str = Field(..., description="이메일 주소")
    role: str = Field("user", description="대표 역할")
    roles: List[str] = Field(default_factory=list, description="역할 목록")
    is_active: bool = True
    bio: Optional[str] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = Field(None, description="생성일시")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "user_id": 1,
                "username": "player_one",
                "email": "player@example.com",
                "role": "user",
                "roles": ["user"],
                "is_active": True,
                "created_at": "2024-01-01T10:00:00"
            }
        }


class UserListResponse(BaseModel):
    """
    사용자 목록 응답 스키마
    """
    users: list[UserResponse] = Field(..., description="사용자 목록")
    total: int = Field(..., description="전체 사용자 수")
    skip: int = Field(..., description="건너뛴 레코드 수")
    limit: int = Field(..., description="조회한 레코드 수")


class ProfileUpdateRequest(BaseModel):
    """
    본인 프로필 수정 (형식 검증은 VALIDATION_RULES 로 수행)
    """
    username: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = Field(None, max_length=500)


class PasswordChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field("", alias="currentPassword")
    new_password: str = Field("", alias="newPassword")


class ProfileUpdateResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
