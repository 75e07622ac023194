from typing import Type, TypeVar

from fastapi import APIRouter, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from app.schemas.common import ErrorResponse
from app.services.advanced_security import RequestContext

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_router(prefix: str, tags: list[str] | None = None):
    """
    공통 API 라우터 생성 유틸리티

    Args:
        prefix (str): /api 뒤 경로 (예: "auth", "admin/security")

    Returns:
        APIRouter: /api/{prefix} 구조의 FastAPI 라우터
    """
    base_prefix = "/api"

    # 🔹 중복된 슬래시나 대문자 문제 방지
    prefix = prefix.strip("/").lower()

    full_prefix = f"{base_prefix}/{prefix}" if prefix else base_prefix

    router = APIRouter(prefix=full_prefix, tags=tags or [prefix or "api"])

    return router


def parse_body(model: Type[ModelT], ctx: RequestContext) -> ModelT:
    """
    보안 게이트가 파싱한 JSON 바디를 스키마로 검증
    실패 시 RequestValidationError (→ 422)
    """
    try:
        return model.model_validate(ctx.body if ctx.body is not None else {})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


def raise_for_error(error: ErrorResponse) -> None:
    """
    서비스가 돌려준 ErrorResponse 를 HTTPException 으로 변환
    """
    raise HTTPException(status_code=error.status_code, detail=error.model_dump(exclude_none=True))
