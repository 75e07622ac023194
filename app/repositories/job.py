import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.job import ApplicationStatus, Job, JobApplication
from app.utils.datetime import utc_now_naive

logger = logging.getLogger(__name__)


class JobRepository:
    """
    채용 공고 / 지원서 저장소
    """

    async def create_job(self, db: AsyncSession, job: Job) -> Job:
        try:
            db.add(job)
            await db.commit()
            await db.refresh(job)
        except Exception as e:
            await db.rollback()
            logger.error(f"채용 공고 생성 오류: {e}")
            raise
        return job

    async def get_job(self, db: AsyncSession, job_id: int) -> Optional[Job]:
        job = await db.get(Job, job_id)
        if job is None or job.is_deleted:
            return None
        return job

    async def get_jobs(self, db: AsyncSession, open_only: bool = True) -> List[Job]:
        stmt = select(Job).where(Job.is_deleted.is_(False))
        if open_only:
            stmt = stmt.where(Job.is_open.is_(True))
        result = await db.execute(stmt.order_by(Job.is_featured.desc(), Job.created_at.desc()))
        return list(result.scalars().all())

    async def create_application(self, db: AsyncSession, application: JobApplication) -> JobApplication:
        try:
            db.add(application)
            await db.commit()
            await db.refresh(application)
        except Exception as e:
            await db.rollback()
            logger.error(f"지원서 저장 오류 (job_id={application.job_id}): {e}")
            raise

        logger.info(f"지원서 접수: job={application.job_id} application={application.application_id}")
        return application

    async def get_application(self, db: AsyncSession, application_id: int) -> Optional[JobApplication]:
        return await db.get(JobApplication, application_id)

    async def get_applications(
        self,
        db: AsyncSession,
        job_id: Optional[int] = None,
        status: Optional[ApplicationStatus] = None,
    ) -> List[JobApplication]:
        stmt = select(JobApplication)
        if job_id is not None:
            stmt = stmt.where(JobApplication.job_id == job_id)
        if status is not None:
            stmt = stmt.where(JobApplication.status == status)
        result = await db.execute(stmt.order_by(JobApplication.created_at.desc(),
                                                JobApplication.application_id.desc()))
        return list(result.scalars().all())

    async def get_latest_user_application(
        self, db: AsyncSession, user_id: int, job_id: int
    ) -> Optional[JobApplication]:
        result = await db.execute(
            select(JobApplication)
            .where(JobApplication.user_id == user_id, JobApplication.job_id == job_id)
            .order_by(JobApplication.created_at.desc(), JobApplication.application_id.desc())
        )
        return result.scalars().first()

    async def update_status(
        self, db: AsyncSession, application: JobApplication, status: ApplicationStatus
    ) -> JobApplication:
        try:
            application.status = status
            application.updated_at = utc_now_naive()
            await db.commit()
            await db.refresh(application)
        except Exception as e:
            await db.rollback()
            logger.error(f"지원서 상태 변경 오류 (id={application.application_id}): {e}")
            raise
        return application
