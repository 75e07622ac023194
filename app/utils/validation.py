"""
입력값 검증 유틸리티

- 필드 단위 검증 규칙(VALIDATION_RULES)과 검증 함수
- XSS 방지를 위한 sanitize / 의심 패턴 탐지
- 요청 바디 크기, JSON 구조 검증
"""
import ipaddress
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Tuple

CustomValidator = Callable[[Any, Optional[Mapping[str, Any]]], Optional[str]]

DEFAULT_MAX_BODY_SIZE = 1024 * 1024


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationRules:
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern[str]] = None
    required: bool = False
    custom: Optional[CustomValidator] = None


# ----------------------------------------------------------------------
# 필드별 커스텀 검증
# ----------------------------------------------------------------------
def _check_username(value: Any, context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    text = str(value)
    if ".." in text or text.startswith(".") or text.endswith("."):
        return "Username cannot start or end with dots or contain consecutive dots"
    lowered = text.lower()
    if "admin" in lowered or "root" in lowered:
        return "Username cannot contain restricted words"
    return None


def _check_email(value: Any, context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    parts = str(value).split("@")
    if len(parts) > 1 and len(parts[1]) > 63:
        return "Email domain is too long"
    return None


_COMMON_PASSWORD_PATTERNS = [
    re.compile(r"123456"),
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"qwerty", re.IGNORECASE),
    re.compile(r"abc123", re.IGNORECASE),
    re.compile(r"admin", re.IGNORECASE),
    re.compile(r"user", re.IGNORECASE),
    re.compile(r"test", re.IGNORECASE),
]


def _check_password(value: Any, context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    text = str(value)
    if " " in text:
        return "Password cannot contain spaces"

    if any(p.search(text) for p in _COMMON_PASSWORD_PATTERNS):
        return "Password cannot contain common patterns"

    # 이메일 local part 와 유사한 비밀번호 금지
    email = (context or {}).get("email")
    if email:
        local_part = str(email).split("@")[0].lower()
        if len(local_part) > 3 and local_part in text.lower():
            return "Password cannot be similar to your email"

    if re.search(r"(.)\1{2,}", text):
        return "Password cannot contain more than 2 consecutive identical characters"

    return None


_XSS_PATTERN = re.compile(r"<script|javascript:|on\w+\s*=", re.IGNORECASE)


def _check_general_text(value: Any, context: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    if _XSS_PATTERN.search(str(value)):
        return "Invalid characters detected"
    return None


VALIDATION_RULES: Dict[str, ValidationRules] = {
    "username": ValidationRules(
        min_length=3,
        max_length=20,
        pattern=re.compile(r"^[a-zA-Z0-9_-]+$"),
        required=True,
        custom=_check_username,
    ),
    "email": ValidationRules(
        pattern=re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
        max_length=254,
        required=True,
        custom=_check_email,
    ),
    "password": ValidationRules(
        min_length=10,
        max_length=128,
        required=True,
        pattern=re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]"),
        custom=_check_password,
    ),
    "general_text": ValidationRules(
        max_length=1000,
        required=False,
        custom=_check_general_text,
    ),
}


def _is_blank(value: Any) -> bool:
    return value is None or value is False or str(value).strip() == ""


def validate_field(
    value: Any,
    rules: ValidationRules,
    field_name: str,
    context: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """
    단일 필드 검증

    - required 인데 비어 있으면 즉시 실패
    - 비어 있고 optional 이면 통과
    - 나머지 규칙(길이, 패턴, 커스텀)은 모든 오류를 누적
    """
    if rules.required and _is_blank(value):
        return ValidationResult(False, [f"{field_name} is required"])

    if _is_blank(value):
        return ValidationResult(True, [])

    errors: List[str] = []
    text = str(value)

    if rules.min_length is not None and len(text) < rules.min_length:
        errors.append(f"{field_name} must be at least {rules.min_length} characters long")

    if rules.max_length is not None and len(text) > rules.max_length:
        errors.append(f"{field_name} must be no more than {rules.max_length} characters long")

    if rules.pattern is not None and not rules.pattern.search(text):
        errors.append(f"{field_name} format is invalid")

    if rules.custom is not None:
        custom_error = rules.custom(value, context)
        if custom_error:
            errors.append(custom_error)

    return ValidationResult(len(errors) == 0, errors)


def validate_fields(
    fields: Mapping[str, Tuple[Any, ValidationRules]],
    context: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """
    여러 필드 검증 결과를 합칩니다.
    """
    all_errors: List[str] = []
    for field_name, (value, rules) in fields.items():
        result = validate_field(value, rules, field_name, context)
        if not result.is_valid:
            all_errors.extend(result.errors)
    return ValidationResult(len(all_errors) == 0, all_errors)


def sanitize_input(value: Any) -> str:
    """
    XSS 방지용 입력 정리 (태그 문자, javascript: 프로토콜, 이벤트 핸들러 제거)
    """
    if not isinstance(value, str):
        return ""
    cleaned = value.strip()
    cleaned = re.sub(r"[<>]", "", cleaned)
    cleaned = re.sub(r"javascript:", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"on\w+\s*=", "", cleaned, flags=re.IGNORECASE)
    return cleaned[:1000]


_SUSPICIOUS_PATTERNS = [
    re.compile(r"(.)\1{10,}"),                      # 같은 문자 11회 이상 반복
    re.compile(r"[<>]"),                            # HTML 태그
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),        # 이벤트 핸들러
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"document\.", re.IGNORECASE),
    re.compile(r"window\.", re.IGNORECASE),
    re.compile(r"alert\s*\(", re.IGNORECASE),
    re.compile(r"prompt\s*\(", re.IGNORECASE),
    re.compile(r"confirm\s*\(", re.IGNORECASE),
]


def detect_suspicious_activity(text: str) -> bool:
    return any(p.search(text) for p in _SUSPICIOUS_PATTERNS)


def body_size(body: str) -> int:
    return len(body.encode("utf-8"))


def validate_request_body_size(body: str, max_size: int = DEFAULT_MAX_BODY_SIZE) -> ValidationResult:
    if body_size(body) > max_size:
        return ValidationResult(
            False,
            [f"Request body is too large. Maximum size is {max_size} bytes"],
        )
    return ValidationResult(True, [])


def validate_json_structure(data: Any, required_fields: List[str]) -> ValidationResult:
    if not isinstance(data, dict):
        return ValidationResult(False, ["Request body must be a valid JSON object"])

    errors = [f"Missing required field: {f}" for f in required_fields if f not in data]
    return ValidationResult(len(errors) == 0, errors)


def is_valid_ipv4(ip: str) -> bool:
    """
    점 표기 IPv4 주소인지 확인 (선행 0 허용 안 함)
    """
    try:
        return isinstance(ipaddress.ip_address(ip), ipaddress.IPv4Address)
    except ValueError:
        return False
