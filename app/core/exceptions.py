"""
애플리케이션 예외 정의

- SecurityGateRejection: 보안 게이트 검사 실패 (그대로 JSON 응답으로 변환)
- AppError 계열: 서비스/레포지토리 도메인 오류 (status_code 보유)
"""
from typing import Any, Dict, Optional


class SecurityGateRejection(Exception):
    """
    보안 게이트에서 요청을 거부할 때 발생
    exception handler가 status_code / content / headers 그대로 응답을 만든다.
    """

    def __init__(
        self,
        status_code: int,
        content: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(content.get("error", "Request rejected"))
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}


class AppError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IPAlreadyBlockedError(AppError):
    status_code = 409

    def __init__(self, ip: str):
        super().__init__("IP is already blocked")
        self.ip = ip


class IPNotBlockedError(AppError):
    status_code = 404

    def __init__(self, ip: str):
        super().__init__("IP is not blocked")
        self.ip = ip


class RoleNotFoundError(AppError):
    status_code = 404

    def __init__(self, role_id: str):
        super().__init__(f"Role not found: {role_id}")
        self.role_id = role_id


class SystemRoleError(AppError):
    status_code = 403

    def __init__(self, role_id: str):
        super().__init__("Cannot delete system role")
        self.role_id = role_id


class MaintenanceUpdateError(AppError):
    status_code = 500

    def __init__(self):
        super().__init__("Failed to update maintenance mode in database")


class UserNotFoundError(AppError):
    status_code = 404

    def __init__(self, user_id):
        super().__init__("User not found")
        self.user_id = user_id


class PaymentNotConfiguredError(AppError):
    status_code = 503

    def __init__(self):
        super().__init__("Payment gateway not configured")


class PaymentGatewayError(AppError):
    """
    결제 대행사(PayPal) API 호출 실패
    """
    status_code = 502

    def __init__(self, message: str = "Payment provider error"):
        super().__init__(message)
