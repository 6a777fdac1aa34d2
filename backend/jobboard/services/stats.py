"""Dashboard and admin counters."""
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import Company, CompanyMember
from jobboard.models.job import Job, JobStatus
from jobboard.models.saved import SavedJob
from jobboard.models.user import User, UserRole
from jobboard.services.credits import get_credit_balance


async def _count(db: AsyncSession, query) -> int:
    return int((await db.execute(query)).scalar_one() or 0)


async def get_talent_stats(db: AsyncSession, user: User) -> dict:
    return {
        "applications_count": await _count(
            db, select(func.count(Application.id)).where(Application.user_id == user.id)
        ),
        "saved_jobs_count": await _count(
            db, select(func.count(SavedJob.id)).where(SavedJob.user_id == user.id)
        ),
        "interviews_count": await _count(
            db,
            select(func.count(Application.id)).where(
                Application.user_id == user.id,
                Application.status == ApplicationStatus.INTERVIEW,
            ),
        ),
    }


async def get_employer_stats(db: AsyncSession, user: User) -> dict:
    """Counters over the jobs of every company the user belongs to."""
    company_ids = select(CompanyMember.company_id).where(CompanyMember.user_id == user.id)
    own_jobs = Job.company_id.in_(company_ids)

    return {
        "active_jobs_count": await _count(
            db, select(func.count(Job.id)).where(own_jobs, Job.status == JobStatus.ACTIVE)
        ),
        "total_views": await _count(
            db, select(func.coalesce(func.sum(Job.view_count), 0)).where(own_jobs)
        ),
        "total_applications": await _count(
            db,
            select(func.count(Application.id))
            .join(Job, Job.id == Application.job_id)
            .where(own_jobs),
        ),
        "credits_balance": await get_credit_balance(db, user.id),
    }


async def get_admin_stats(db: AsyncSession) -> dict:
    return {
        "total_jobs": await _count(db, select(func.count(Job.id))),
        "total_companies": await _count(db, select(func.count(Company.id))),
        "total_users": await _count(db, select(func.count(User.id))),
        "pending_jobs": await _count(
            db, select(func.count(Job.id)).where(Job.status == JobStatus.PENDING)
        ),
        "pending_companies": await _count(
            db,
            select(func.count(Company.id)).where(
                Company.is_approved.is_(False), Company.rejected_at.is_(None)
            ),
        ),
    }


async def get_dashboard_stats(db: AsyncSession, user: User) -> dict:
    if user.role == UserRole.TALENT:
        return await get_talent_stats(db, user)
    if user.role in (UserRole.EMPLOYER, UserRole.RECRUITER):
        return await get_employer_stats(db, user)
    return {}
