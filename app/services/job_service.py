"""
채용 공고 / 지원서 서비스
- 커스텀 폼 필드가 없는 공고는 표준 필드(name, email, discord, experience, whyJoin, availability) 필수
- 커스텀 폼 필드 응답 키: field_<영문 라벨 소문자, 공백은 _>
- 자유 입력은 general_text 규칙으로 검증 후 sanitize
"""
import logging
import math
import re
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job import ApplicationStatus, Job, JobApplication
from app.repositories.job import JobRepository
from app.schemas.common import ErrorResponse
from app.schemas.job import ApplicationRequest, JobCreateRequest
from app.utils.datetime import utc_now_naive
from app.utils.validation import (VALIDATION_RULES, sanitize_input,
                                  validate_field)

logger = logging.getLogger(__name__)

STANDARD_FIELDS = ["name", "email", "discord", "experience", "why_join", "availability"]

REAPPLY_COOLDOWN = timedelta(hours=24)


def form_field_key(label_en: str) -> str:
    return "field_" + re.sub(r"\s+", "_", label_en.strip().lower())


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class JobService:

    def __init__(self, repository: Optional[JobRepository] = None):
        self.repository = repository or JobRepository()

    async def list_open_jobs(self, db: AsyncSession) -> List[Job]:
        return await self.repository.get_jobs(db, open_only=True)

    async def get_job(self, db: AsyncSession, job_id: int) -> Optional[Job]:
        return await self.repository.get_job(db, job_id)

    async def create_job(self, db: AsyncSession, data: JobCreateRequest) -> Job:
        payload = data.model_dump()
        job = Job(
            title=payload["title"],
            description=payload["description"],
            category=payload["category"],
            requirements=payload["requirements"],
            is_open=payload["is_open"],
            is_featured=payload["is_featured"],
            form_fields=payload["form_fields"],
        )
        return await self.repository.create_job(db, job)

    async def _check_previous_application(
        self, db: AsyncSession, user_id: int, job_id: int
    ) -> Optional[ErrorResponse]:
        previous = await self.repository.get_latest_user_application(db, user_id, job_id)
        if previous is None:
            return None

        if previous.status in (ApplicationStatus.PENDING, ApplicationStatus.APPROVED):
            return ErrorResponse(error="You have already applied for this job")

        rejected_at = previous.updated_at or previous.created_at
        elapsed = utc_now_naive() - rejected_at
        if elapsed < REAPPLY_COOLDOWN:
            hours = math.ceil((REAPPLY_COOLDOWN - elapsed).total_seconds() / 3600)
            return ErrorResponse(
                error=f"Your previous application was rejected. Please wait {hours} more "
                      f"hour{'s' if hours != 1 else ''} before applying again."
            )
        return None

    def _collect_custom_answers(
        self, job: Job, data: ApplicationRequest
    ) -> tuple[Dict[str, Any], Optional[ErrorResponse]]:
        extra = data.model_extra or {}
        answers: Dict[str, Any] = {}

        for field in job.form_fields:
            label = field.get("label") or {}
            label_en = label.get("en", "")
            key = form_field_key(label_en)
            value = extra.get(key)

            if field.get("required") and _is_blank(value):
                return {}, ErrorResponse(error=f"{label_en or label.get('ar', key)} is required")

            if value is None:
                continue
            if isinstance(value, str):
                result = validate_field(value, VALIDATION_RULES["general_text"], label_en or key)
                if not result.is_valid:
                    return {}, ErrorResponse(error="Validation failed", errors=result.errors)
                value = sanitize_input(value)
            answers[key] = value

        return answers, None

    def _collect_standard_fields(
        self, data: ApplicationRequest
    ) -> tuple[Dict[str, str], Optional[ErrorResponse]]:
        values = {name: getattr(data, name) for name in STANDARD_FIELDS}
        if any(_is_blank(v) for v in values.values()):
            return {}, ErrorResponse(error="Missing required fields")

        errors: List[str] = []
        email_result = validate_field(values["email"], VALIDATION_RULES["email"], "email")
        errors.extend(email_result.errors)
        for name in ("name", "discord", "experience", "why_join", "availability"):
            errors.extend(validate_field(values[name], VALIDATION_RULES["general_text"], name).errors)
        if errors:
            return {}, ErrorResponse(error="Validation failed", errors=errors)

        cleaned = {name: sanitize_input(v) for name, v in values.items() if name != "email"}
        cleaned["email"] = values["email"].strip()
        return cleaned, None

    async def submit_application(
        self, db: AsyncSession, data: ApplicationRequest, user_id: Optional[int] = None
    ) -> tuple[Optional[JobApplication], Optional[ErrorResponse]]:
        """
        지원서 접수

        Returns:
            성공 시: (JobApplication, None)
            실패 시: (None, ErrorResponse)
        """
        job = await self.repository.get_job(db, data.job_id)
        if job is None:
            return None, ErrorResponse(error="Job not found", status_code=404)
        if not job.is_open:
            return None, ErrorResponse(error="This job is not accepting applications")

        if user_id is not None:
            error = await self._check_previous_application(db, user_id, job.job_id)
            if error:
                return None, error

        application = JobApplication(job_id=job.job_id, user_id=user_id)

        if job.form_fields:
            answers, error = self._collect_custom_answers(job, data)
            if error:
                return None, error
            application.answers = answers
        else:
            fields, error = self._collect_standard_fields(data)
            if error:
                return None, error
            for name, value in fields.items():
                setattr(application, name, value)

        saved = await self.repository.create_application(db, application)
        return saved, None

    async def list_applications(
        self,
        db: AsyncSession,
        job_id: Optional[int] = None,
        status: Optional[ApplicationStatus] = None,
    ) -> List[JobApplication]:
        return await self.repository.get_applications(db, job_id, status)

    async def update_application_status(
        self, db: AsyncSession, application_id: int, status: ApplicationStatus
    ) -> Optional[JobApplication]:
        application = await self.repository.get_application(db, application_id)
        if application is None:
            return None
        return await self.repository.update_status(db, application, status)
