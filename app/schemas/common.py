from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    에러 응답 스키마
    status_code 는 라우터가 HTTP 상태로 변환할 때만 사용 (응답 본문에서 제외)
    """
    error: str = Field(..., description="에러 메시지")
    detail: Optional[str] = Field(None, description="상세 에러 정보")
    errors: Optional[List[str]] = Field(None, description="필드 검증 오류 목록")
    status_code: int = Field(400, exclude=True)

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Validation failed",
                "errors": ["username must be at least 3 characters long"],
            }
        }


class MessageResponse(BaseModel):
    success: bool = True
    message: str
