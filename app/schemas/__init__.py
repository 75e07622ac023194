"""
API 스키마 모듈

Request/Response 스키마들을 정의합니다.
API 데이터 형식을 정의합니다.
"""

from .common import ErrorResponse, MessageResponse
from .user import UserListResponse, UserResponse, UserUpdateRequest

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "UserUpdateRequest",
    "UserResponse",
    "UserListResponse",
]
