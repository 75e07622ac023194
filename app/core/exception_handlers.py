"""
전역 예외 핸들러

- RequestValidationError → 422 (메시지는 WARNING 로그)
- SecurityGateRejection → 게이트가 지정한 status/content/headers 그대로
- AppError → status_code 와 {"error": message}
- 그 외 처리되지 않은 예외 → 500 + API_ERROR 보안 이벤트
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import AppError, SecurityGateRejection

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    error_messages = []

    for error in errors:
        field = error.get("loc", [])[-1] if error.get("loc") else "unknown"
        msg = error.get("msg", "")

        if "at least" in msg and "characters" in msg:
            min_length = error.get("ctx", {}).get("min_length", "")
            error_messages.append(f"{field}는 최소 {min_length}자 이상으로 설정해주세요.")
        elif "valid email" in msg.lower():
            error_messages.append(f"{field}는 유효한 이메일 주소를 입력해주세요.")
        elif "missing" in msg.lower():
            error_messages.append(f"{field}는 필수 입력 항목입니다.")
        else:
            error_messages.append(f"{field}: {msg}")

    for message in error_messages:
        logger.warning(message)

    # ctx 에 예외 객체가 들어갈 수 있어 문자열만 남긴다
    detail = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in errors
    ]
    return JSONResponse(status_code=422, content={"detail": detail})


async def security_gate_handler(request: Request, exc: SecurityGateRejection):
    return JSONResponse(status_code=exc.status_code, content=exc.content, headers=exc.headers)


async def app_error_handler(request: Request, exc: AppError):
    logger.warning(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def global_exception_handler(request: Request, exc: Exception):
    """
    처리되지 않은 예외를 로그로 남기고 API_ERROR 이벤트를 기록한다.
    """
    from app.services.advanced_security import get_security_manager
    from app.services.rate_limit import get_client_ip
    from app.services.security_monitor import SecurityEventType, Severity

    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )

    context = getattr(request.state, "security_context", None)
    manager = getattr(request.state, "security_manager", None)
    if manager is None:
        provider = request.app.dependency_overrides.get(get_security_manager, get_security_manager)
        manager = provider()
    client_ip = context.client_ip if context else get_client_ip(request)

    await manager.log_event(
        SecurityEventType.API_ERROR,
        Severity.HIGH,
        client_ip,
        {"error": str(exc), "path": request.url.path, "method": request.method},
        request.headers.get("user-agent"),
    )

    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def setup_exception_handlers(app: FastAPI) -> None:
    """
    FastAPI 앱에 예외 핸들러 등록
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SecurityGateRejection, security_gate_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered")
