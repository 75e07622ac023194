"""
Main.py works as a main function for the application
Api app starts from here
"""

from contextlib import asynccontextmanager
from logging import getLogger
from logging.config import dictConfig
import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.database import get_session, init_db
from app.middleware import MaintenanceMiddleware, SecurityHeadersMiddleware
from app.routers import (admin_security_router, auth_router, content_router,
                         coupons_router, jobs_router, maintenance_router,
                         orders_router, payment_router, profile_router,
                         roles_router, rules_router, store_router,
                         user_router)
from app.services.advanced_security import get_security_manager
from app.services.maintenance import get_maintenance_service
from app.services.rate_limit import get_rate_limiter
from app.services.security_monitor import get_security_monitor
from app.utils.dependencies import (fake_admin_user, get_current_user,
                                    get_optional_user)
from app.utils.logger import app_logger
from app.utils.seed_data import init_seed_data


# ----------------------------------------------------------------------
# Lifespan: 앱 시작 시 DB 초기화 및 백그라운드 태스크 관리
# ----------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # DB 초기화
    await init_db()

    # 초기 데이터 시딩 (시스템 역할, owner 계정)
    async for session in get_session():
        try:
            await init_seed_data(session)
        except Exception as e:
            logger.error(f"데이터 시딩 중 오류 발생: {e}")
        break  # 첫 번째 세션만 사용 (get_session()이 자동으로 close 처리)

    # 점검 모드 상태 로드
    maintenance_enabled = await get_maintenance_service().load_from_db()
    if maintenance_enabled:
        logger.warning("점검 모드가 활성화된 상태로 시작합니다.")

    # 백그라운드 태스크 시작
    tasks = []

    # Rate limit 엔트리 정리
    limiter_task = asyncio.create_task(
        get_rate_limiter().run_cleanup_loop(settings.RATE_LIMIT_CLEANUP_SECONDS)
    )
    tasks.append(limiter_task)
    logger.info("Rate limiter cleanup 시작됨")

    # 오래된 보안 이벤트 정리 (메모리)
    prune_task = asyncio.create_task(
        get_security_monitor().run_prune_loop(
            settings.RATE_LIMIT_CLEANUP_SECONDS, settings.SECURITY_EVENT_RETENTION_HOURS
        )
    )
    tasks.append(prune_task)
    logger.info("Security monitor prune 시작됨")

    # 의심 IP 카운터 / 만료된 자동 차단 정리
    manager_task = asyncio.create_task(
        get_security_manager().run_cleanup_loop(
            settings.RATE_LIMIT_CLEANUP_SECONDS, settings.SUSPICIOUS_ACTIVITY_TTL_SECONDS
        )
    )
    tasks.append(manager_task)
    logger.info("Security manager cleanup 시작됨")

    yield

    # 앱 종료 시 백그라운드 태스크 정리
    logger.info("백그라운드 태스크 종료 중...")
    for task in tasks:
        task.cancel()

    await asyncio.gather(*tasks, return_exceptions=True)
    logger.info("백그라운드 태스크 정리 완료")


logger = getLogger(__name__)

# ----------------------------------------------------------------------
# FastAPI 애플리케이션 생성
# ----------------------------------------------------------------------
app = FastAPI(
    title="Community Store Backend",
    description="FastAPI 기반 커뮤니티/스토어 백엔드 API (보안 게이트 포함)",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEPLOY_PHASE in ("dev", "local") else None,
    lifespan=lifespan,
)

# ----------------------------------------------------------------------
# User 인증 생략
# ----------------------------------------------------------------------
if settings.SKIP_AUTH and settings.DEPLOY_PHASE in ("dev", "local"):
    app.dependency_overrides[get_current_user] = fake_admin_user
    app.dependency_overrides[get_optional_user] = fake_admin_user

# ----------------------------------------------------------------------
# 로거 설정
# ----------------------------------------------------------------------
dictConfig(app_logger)

# ----------------------------------------------------------------------
# 예외 핸들러
# ----------------------------------------------------------------------
setup_exception_handlers(app)

# ----------------------------------------------------------------------
# 미들웨어 (나중에 등록한 것이 바깥쪽)
# ----------------------------------------------------------------------
app.add_middleware(MaintenanceMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

# ----------------------------------------------------------------------
# 라우터 등록
# ----------------------------------------------------------------------
app.include_router(auth_router)  # 회원가입 / 로그인 / JWT
app.include_router(user_router)  # 관리자 사용자 관리
app.include_router(admin_security_router)  # IP 차단 / 보안 이벤트
app.include_router(roles_router)  # 역할 / 권한
app.include_router(maintenance_router)  # 점검 모드
app.include_router(jobs_router)  # 채용 공고 / 지원서
app.include_router(profile_router)  # 본인 프로필 / 비밀번호 변경
app.include_router(store_router)  # 상품 / 카테고리
app.include_router(coupons_router)  # 쿠폰
app.include_router(orders_router)  # 주문 / 사용자 메시지
app.include_router(payment_router)  # PayPal 결제
app.include_router(content_router)  # 페이지 콘텐츠 / 문의하기
app.include_router(rules_router)  # 커뮤니티 규칙

# ----------------------------------------------------------------------
# 기본 라우트
# ----------------------------------------------------------------------


@app.get("/")
async def root():
    return {"message": "Hello, World!"}
