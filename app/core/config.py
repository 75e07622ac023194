# app/core/config.py
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEPLOY_PHASE: str = "local"
    SKIP_AUTH: bool = False
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

    DATABASE_URL: str = "sqlite+aiosqlite:///./community.db"

    # JWT / 세션
    JWT_SECRET: str = "change-me-please"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    SESSION_COOKIE_NAME: str = "session-token"

    # 보안 게이트
    MAX_BODY_SIZE: int = 1024 * 1024
    IP_CHECK_TIMEOUT: float = 3.0
    EVENT_LOG_TIMEOUT: float = 2.0
    AUTO_BLOCK_THRESHOLD: int = 5
    AUTO_BLOCK_DURATION_SECONDS: int = 24 * 60 * 60
    MIN_FORM_FILL_MS: int = 2000
    RATE_LIMIT_CLEANUP_SECONDS: int = 5 * 60
    SECURITY_EVENT_BUFFER: int = 10000
    SECURITY_EVENT_RETENTION_HOURS: int = 24
    SUSPICIOUS_ACTIVITY_TTL_SECONDS: int = 24 * 60 * 60

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    # PayPal (미설정 시 결제 API 503)
    PAYPAL_CLIENT_ID: Optional[str] = None
    PAYPAL_CLIENT_SECRET: Optional[str] = None
    PAYPAL_ENVIRONMENT: str = "sandbox"
    PAYPAL_RETURN_URL: str = "http://localhost:3000/checkout/success"
    PAYPAL_CANCEL_URL: str = "http://localhost:3000/checkout/cancel"

    # 최초 owner 계정 (선택)
    OWNER_EMAIL: Optional[str] = None
    OWNER_PASSWORD: Optional[str] = None


settings = Settings()
