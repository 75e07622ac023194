# routers/jobs.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.job import ApplicationStatus
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.job import (ApplicationRequest, ApplicationResponse,
                             ApplicationStatusUpdate, JobCreateRequest,
                             JobResponse)
from app.services.advanced_security import RequestContext, protected
from app.services.job_service import JobService
from app.services.permissions import require_permission
from app.services.rate_limit import rate_limited
from app.utils.dependencies import get_optional_user
from app.utils.router_utils import parse_body, raise_for_error

router = APIRouter(prefix="/api", tags=["jobs"])

application_gate = protected(
    rate_limit_type="GENERAL_API",
    require_honeypot=True,
    require_timing=True,
    allowed_methods=["POST"],
)


def get_job_service() -> JobService:
    return JobService()


@router.get("/jobs", response_model=List[JobResponse], dependencies=[Depends(rate_limited("GENERAL_API"))])
async def list_jobs(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
):
    return await service.list_open_jobs(db)


@router.get(
    "/jobs/{job_id}",
    response_model=JobResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("GENERAL_API"))],
)
async def get_job(
    job_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
):
    job = await service.get_job(db, job_id)
    if job is None:
        raise_for_error(ErrorResponse(error="Job not found", status_code=404))
    return job


@router.post(
    "/jobs",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("jobs.create"))],
)
async def create_job(
    req: JobCreateRequest,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
):
    return await service.create_job(db, req)


@router.post(
    "/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def submit_application(
    ctx: Annotated[RequestContext, Depends(application_gate)],
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
):
    """
    채용 지원서 제출 (honeypot + 작성 시간 검사)
    """
    data = parse_body(ApplicationRequest, ctx)
    user_id = current_user.user_id if current_user else None

    application, error = await service.submit_application(db, data, user_id)
    if error:
        raise_for_error(error)
    return application


@router.get(
    "/applications",
    response_model=List[ApplicationResponse],
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("jobs.applications.view"))],
)
async def list_applications(
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
    job_id: Optional[int] = Query(None, alias="jobId"),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
):
    return await service.list_applications(db, job_id, status_filter)


@router.put(
    "/applications/{application_id}/status",
    response_model=ApplicationResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("ADMIN")), Depends(require_permission("jobs.applications.manage"))],
)
async def update_application_status(
    application_id: int,
    req: ApplicationStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[JobService, Depends(get_job_service)],
):
    application = await service.update_application_status(db, application_id, req.status)
    if application is None:
        raise_for_error(ErrorResponse(error="Application not found", status_code=404))
    return application
