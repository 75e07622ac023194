# routers/auth.py
from typing import Annotated

from fastapi import Depends, Request, Response, status

from app.core.config import settings
from app.models.user import User
from app.schemas.auth import (LoginRequest, RegisterRequest, TokenPair,
                              TokenRefreshRequest)
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import UserResponse
from app.services.advanced_security import (AdvancedSecurityManager,
                                            RequestContext,
                                            get_security_manager, protected)
from app.services.auth_service import AuthService
from app.services.rate_limit import rate_limited
from app.services.security_monitor import SecurityEventType, Severity
from app.utils.dependencies import get_auth_service, get_current_user
from app.utils.router_utils import get_router, parse_body, raise_for_error
from app.utils.security import decode_token

router = get_router("auth")

register_gate = protected(
    rate_limit_type="REGISTRATION",
    require_honeypot=True,
    require_timing=True,
    allowed_methods=["POST"],
)
login_gate = protected(rate_limit_type="LOGIN", allowed_methods=["POST"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="회원가입",
    responses={
        400: {"model": ErrorResponse, "description": "검증 실패 / 봇 의심"},
        409: {"model": ErrorResponse, "description": "이미 사용 중인 이메일 또는 사용자명"},
        429: {"description": "Rate limit 초과"},
    },
)
async def register(
    ctx: Annotated[RequestContext, Depends(register_gate)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    """
    새로운 사용자를 생성합니다.

    - **username**: 3-20자, 영문/숫자/_/-
    - **email**: 이메일 주소
    - **password**: 10자 이상, 대/소문자, 숫자, 특수문자 포함
    - **confirmPassword**: password 와 동일
    - **formStartTime**: 폼 표시 시각 (epoch ms)
    """
    data = parse_body(RegisterRequest, ctx)
    user_response, error = await service.register(data)

    if error:
        await manager.log_event(
            SecurityEventType.REGISTRATION_ERROR, Severity.LOW, ctx.client_ip,
            {"error": error.error, "email": data.email}, ctx.user_agent,
        )
        raise_for_error(error)

    await manager.log_event(
        SecurityEventType.USER_REGISTERED, Severity.LOW, ctx.client_ip,
        {"userId": user_response.user_id, "username": user_response.username}, ctx.user_agent,
    )
    return user_response


@router.post("/login", response_model=TokenPair)
async def login(
    response: Response,
    ctx: Annotated[RequestContext, Depends(login_gate)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    req = parse_body(LoginRequest, ctx)
    user = await service.authenticate(req.email, req.password)

    if user is None:
        await manager.log_event(
            SecurityEventType.AUTH_FAILURE, Severity.MEDIUM, ctx.client_ip,
            {"email": req.email}, ctx.user_agent,
        )
        raise_for_error(ErrorResponse(error="Invalid email or password", status_code=401))

    access, refresh = service.issue_tokens(user)

    # access token 의 jti 를 세션 id 로 사용
    session_id = decode_token(access)["jti"]
    manager.record_session(session_id, str(user.user_id))
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.DEPLOY_PHASE not in ("local", "dev"),
    )

    await manager.log_event(
        SecurityEventType.USER_LOGIN, Severity.LOW, ctx.client_ip,
        {"userId": user.user_id, "fingerprint": ctx.fingerprint}, ctx.user_agent,
    )
    return TokenPair(access_token=access, refresh_token=refresh)


@router.post("/refresh", response_model=TokenPair, dependencies=[Depends(rate_limited("GENERAL_API"))])
async def refresh(
    req: TokenRefreshRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
):
    access, refresh = await service.refresh(req.refresh_token)
    return TokenPair(access_token=access, refresh_token=refresh)


@router.get("/me", response_model=UserResponse)
async def me(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    manager: Annotated[AdvancedSecurityManager, Depends(get_security_manager)],
):
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        token = authorization[7:]

    payload = decode_token(token) if token else None
    if payload and payload.get("jti"):
        manager.end_session(payload["jti"])

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")
