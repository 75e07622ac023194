"""
로깅 유틸리티

애플리케이션 전반에서 사용할 로거를 설정합니다.
main.py에서 dictConfig(app_logger)로 적용합니다.
- app.security: 보안 이벤트/알림 전용 로거 (WARNING 이상)
"""
app_logger = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(asctime)s :: %(client_addr)s "%(request_line)s" %(status_code)s',
            "use_colors": True,
        },
        "default": {
            "format": "%(levelname)s:     %(asctime)s - %(name)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "security": {
            "format": "%(levelname)s:     %(asctime)s - SECURITY - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "access": {
            "formatter": "access",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
        "default": {
            "formatter": "default",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
        "security": {
            "formatter": "security",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        "app": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "app.security": {"handlers": ["security"], "level": "WARNING", "propagate": False},
    },
}
