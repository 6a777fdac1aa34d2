"""
Job posting business logic: listing order, lazy expiry, closing and tier upgrades.
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, func, case, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.database_types import utcnow
from jobboard.errors import NotFoundError, ValidationError
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import Company, CompanyMember
from jobboard.models.job import Job, JobStatus, JobTier, TIER_PRIORITY
from jobboard.models.user import User
from jobboard.schemas.job import CompanySummary, JobWithCompany
from jobboard.services import credits
from jobboard.services.companies import can_manage_company, require_company_access
from jobboard.services.messaging import JOB_CLOSED_MESSAGE, post_automated_message
from jobboard.services.state_machine import transition_application, transition_job

logger = logging.getLogger(__name__)

# Credits needed to raise a job to each paid tier
TIER_CREDIT_COST: Dict[JobTier, int] = {
    JobTier.FEATURED: 1,
    JobTier.PREMIUM: 2,
}

# Visibility window bought by a credit upgrade
UPGRADE_VISIBILITY_DAYS = 30


def tier_priority():
    """CASE expression ranking premium before featured before normal."""
    return case(
        (Job.tier == JobTier.PREMIUM, TIER_PRIORITY[JobTier.PREMIUM]),
        (Job.tier == JobTier.FEATURED, TIER_PRIORITY[JobTier.FEATURED]),
        else_=TIER_PRIORITY[JobTier.NORMAL],
    )


def listing_order() -> list:
    return [
        tier_priority(),
        Job.published_at.desc().nulls_last(),
        Job.created_at.desc(),
    ]


# ============================================================
# EXPIRY / CLOSING
# ============================================================

async def close_job(db: AsyncSession, job: Job) -> List[Application]:
    """
    Mark a job expired and reject every application still in interview,
    posting the canned closing message on each thread. The caller commits.

    Returns the applications that were rejected.
    """
    if job.status != JobStatus.EXPIRED:
        transition_job(job, JobStatus.EXPIRED)

    result = await db.execute(
        select(Application).where(
            Application.job_id == job.id,
            Application.status == ApplicationStatus.INTERVIEW,
        )
    )
    rejected = list(result.scalars().all())
    for application in rejected:
        transition_application(application, ApplicationStatus.REJECTED)
        await post_automated_message(db, application, JOB_CLOSED_MESSAGE)

    if rejected:
        logger.info(f"Closed job {job.id}: auto-rejected {len(rejected)} interview applications")
    return rejected


async def expire_overdue_jobs(db: AsyncSession) -> int:
    """
    Close every active job whose expires_at has passed. Runs inside read
    paths (listing, detail, apply) instead of a scheduler.

    Returns the number of jobs expired.
    """
    result = await db.execute(
        select(Job).where(
            Job.status == JobStatus.ACTIVE,
            Job.expires_at.is_not(None),
            Job.expires_at < utcnow(),
        )
    )
    overdue = result.scalars().all()
    if not overdue:
        return 0

    for job in overdue:
        await close_job(db, job)
    await db.commit()
    logger.info(f"Expired {len(overdue)} overdue jobs")
    return len(overdue)


# ============================================================
# QUERIES
# ============================================================

def _is_set(value) -> bool:
    return value is not None and value != "" and value != "all"


def _job_filters(
    search: Optional[str] = None,
    category: Optional[str] = None,
    job_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    is_remote: Optional[bool] = None,
    company_id: Optional[UUID] = None,
    tier: Optional[str] = None,
    statuses: Optional[Sequence[JobStatus]] = None,
) -> list:
    filters = []
    if statuses:
        filters.append(Job.status.in_(list(statuses)))
    if _is_set(search):
        pattern = f"%{search}%"
        filters.append(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))
    if _is_set(category):
        filters.append(Job.category == category)
    if _is_set(job_type):
        filters.append(Job.job_type == job_type)
    if _is_set(experience_level):
        filters.append(Job.experience_level == experience_level)
    if is_remote is not None:
        filters.append(Job.is_remote.is_(is_remote))
    if company_id is not None:
        filters.append(Job.company_id == company_id)
    if _is_set(tier):
        filters.append(Job.tier == tier)
    return filters


async def list_jobs(
    db: AsyncSession,
    skip: int = 0,
    limit: int = 50,
    **filter_args,
) -> List[Tuple[Job, Company]]:
    """Jobs joined with their company, in tier/publish order."""
    query = (
        select(Job, Company)
        .join(Company, Company.id == Job.company_id)
        .where(*_job_filters(**filter_args))
        .order_by(*listing_order())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return [(job, company) for job, company in result.all()]


async def count_jobs(db: AsyncSession, **filter_args) -> int:
    result = await db.execute(select(func.count(Job.id)).where(*_job_filters(**filter_args)))
    return result.scalar_one()


async def get_job(db: AsyncSession, job_id: UUID) -> Job:
    """
    Raises:
        NotFoundError: If no job has this id
    """
    job = await db.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


async def get_visible_job(db: AsyncSession, job_id: UUID, user: Optional[User]) -> Job:
    """
    Active jobs are public; anything else is only visible to the
    company's members and admins.

    Raises:
        NotFoundError: If the job does not exist or is hidden from this user
    """
    await expire_overdue_jobs(db)
    job = await get_job(db, job_id)
    if job.status != JobStatus.ACTIVE and not await can_manage_company(db, user, job.company_id):
        raise NotFoundError("Job not found")
    return job


async def list_employer_jobs(db: AsyncSession, user: User) -> List[Tuple[Job, int]]:
    """Jobs of every company the user belongs to, with their application counts."""
    apps_count = (
        select(Application.job_id, func.count(Application.id).label("n"))
        .group_by(Application.job_id)
        .subquery()
    )
    query = (
        select(Job, func.coalesce(apps_count.c.n, 0))
        .join(CompanyMember, CompanyMember.company_id == Job.company_id)
        .outerjoin(apps_count, apps_count.c.job_id == Job.id)
        .where(CompanyMember.user_id == user.id)
        .order_by(Job.created_at.desc())
    )
    result = await db.execute(query)
    return [(job, int(n)) for job, n in result.all()]


# ============================================================
# MUTATIONS
# ============================================================

async def create_job(
    db: AsyncSession,
    user: User,
    data: dict,
    status: JobStatus = JobStatus.PENDING,
) -> Job:
    """
    Create a job for a company the user manages. New jobs wait for admin
    approval. The caller commits.

    Raises:
        ForbiddenError: If the user is neither a member nor an admin
    """
    await require_company_access(db, user, data["company_id"])
    data.setdefault("visibility_days", settings.default_visibility_days)
    data.setdefault("tier", JobTier.NORMAL)
    job = Job(**data, status=status)
    db.add(job)
    await db.flush()
    logger.info(f"Created job {job.id} '{job.title}' for company {job.company_id} ({status.value})")
    return job


async def update_job(db: AsyncSession, job: Job, update_data: dict) -> Job:
    """
    Apply an employer edit. A rejected job goes back to the approval queue.
    """
    merged_min = update_data.get("salary_min", job.salary_min)
    merged_max = update_data.get("salary_max", job.salary_max)
    if merged_min is not None and merged_max is not None and merged_min > merged_max:
        raise ValidationError("Minimum salary cannot exceed maximum salary")

    for field, value in update_data.items():
        setattr(job, field, value)
    if job.status == JobStatus.REJECTED:
        transition_job(job, JobStatus.PENDING)
    job.updated_at = utcnow()
    await db.commit()
    await db.refresh(job)
    return job


async def increment_view_count(db: AsyncSession, job_id: UUID) -> None:
    result = await db.execute(
        update(Job).where(Job.id == job_id).values(view_count=Job.view_count + 1)
    )
    if result.rowcount == 0:
        raise NotFoundError("Job not found")
    await db.commit()


async def approve_job(db: AsyncSession, job: Job) -> Job:
    """Publish a pending (or expired) job for its visibility window."""
    transition_job(job, JobStatus.ACTIVE)
    await db.commit()
    await db.refresh(job)
    return job


async def reject_job(db: AsyncSession, job: Job) -> Job:
    transition_job(job, JobStatus.REJECTED)
    await db.commit()
    await db.refresh(job)
    return job


def apply_tier_upgrade(job: Job, tier: JobTier, visibility_days: int) -> Job:
    """
    Raise the tier (never lowers it) and set the visibility window. An
    active job's expiry restarts from now; other jobs get the window when
    they are approved.
    """
    if TIER_PRIORITY[tier] < TIER_PRIORITY[JobTier(job.tier)]:
        job.tier = tier
    job.visibility_days = visibility_days
    if job.status == JobStatus.ACTIVE:
        job.expires_at = utcnow() + timedelta(days=visibility_days)
    job.updated_at = utcnow()
    logger.info(f"Job {job.id} upgraded to {tier.value} for {visibility_days} days")
    return job


async def upgrade_job_with_credits(db: AsyncSession, user: User, job: Job, tier: JobTier) -> Tuple[Job, int]:
    """
    Redeem the user's credits to raise a job's tier.

    Returns the job and the number of credits spent.

    Raises:
        ValidationError: If the tier is not an upgrade
        InsufficientCreditsError: If the user cannot cover the cost
    """
    if tier not in TIER_CREDIT_COST:
        raise ValidationError(f"Jobs cannot be upgraded to {tier.value}")
    if TIER_PRIORITY[tier] >= TIER_PRIORITY[JobTier(job.tier)]:
        raise ValidationError(f"Job is already {JobTier(job.tier).value}")
    if job.status in (JobStatus.EXPIRED, JobStatus.REJECTED):
        raise ValidationError(f"Cannot upgrade a {JobStatus(job.status).value} job")

    cost = TIER_CREDIT_COST[tier]
    await credits.deduct_credits(
        db, user.id, cost, reason=f"Upgrade job to {tier.value}", tier=tier, job_id=job.id
    )
    apply_tier_upgrade(job, tier, UPGRADE_VISIBILITY_DAYS)
    await db.commit()
    await db.refresh(job)
    return job, cost


def build_job_with_company(job: Job, company: Optional[Company]) -> JobWithCompany:
    response = JobWithCompany.model_validate(job)
    if company is not None:
        response.company = CompanySummary.model_validate(company)
    return response
