"""
Jobs API endpoints.
Public listing and detail, employer CRUD, applying, and tier upgrades.
"""
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user, get_optional_user, require_hiring
from jobboard.database import get_db
from jobboard.errors import AppError
from jobboard.models.job import JobStatus
from jobboard.models.user import User
from jobboard.schemas.application import ApplicationResponse, ApplyRequest
from jobboard.schemas.job import (
    CountResponse,
    JobCreate,
    JobResponse,
    JobUpdate,
    JobUpgradeRequest,
    JobUpgradeResponse,
    JobWithCompany,
)
from jobboard.services import applications as application_service
from jobboard.services import jobs as job_service
from jobboard.services.companies import get_company, require_company_access
from jobboard.services.credits import get_credit_balance

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================
# PUBLIC
# ============================================================

@router.get("", response_model=List[JobWithCompany])
async def list_jobs(
    search: Optional[str] = Query(None, description="Matches title or description"),
    category: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None, alias="type"),
    level: Optional[str] = Query(None, description="Experience level"),
    remote: Optional[bool] = Query(None),
    company_id: Optional[UUID] = Query(None),
    tier: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """
    List active jobs, premium first, then featured, then normal; newest
    first within a tier. Overdue jobs are expired before the query runs.
    """
    await job_service.expire_overdue_jobs(db)
    rows = await job_service.list_jobs(
        db,
        skip=skip,
        limit=limit,
        search=search,
        category=category,
        job_type=job_type,
        experience_level=level,
        is_remote=remote,
        company_id=company_id,
        tier=tier,
        statuses=[JobStatus.ACTIVE],
    )
    return [job_service.build_job_with_company(job, company) for job, company in rows]


@router.get("/count", response_model=CountResponse)
async def count_jobs(db: AsyncSession = Depends(get_db)):
    await job_service.expire_overdue_jobs(db)
    return CountResponse(count=await job_service.count_jobs(db, statuses=[JobStatus.ACTIVE]))


@router.get("/{job_id}", response_model=JobWithCompany)
async def get_job(
    job_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Job detail. Non-active jobs are only visible to the company's members
    and admins; everyone else gets 404.
    """
    job = await job_service.get_visible_job(db, job_id, current_user)
    company = await get_company(db, job.company_id)
    return job_service.build_job_with_company(job, company)


@router.post("/{job_id}/view", status_code=204)
async def record_view(job_id: UUID, db: AsyncSession = Depends(get_db)):
    await job_service.increment_view_count(db, job_id)


# ============================================================
# EMPLOYER
# ============================================================

@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    body: JobCreate,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a job for a company the caller belongs to. The job waits in the
    admin queue (status pending) until approved.

    Returns:
        201: Job created
        403: Not a member of the company
        404: Company not found
    """
    await get_company(db, body.company_id)
    try:
        job = await job_service.create_job(db, current_user, body.model_dump())
        await db.commit()
        await db.refresh(job)
    except AppError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating job: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create job")
    return job


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: UUID,
    body: JobUpdate,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """Partial update by a company member or admin."""
    job = await job_service.get_job(db, job_id)
    await require_company_access(db, current_user, job.company_id)
    return await job_service.update_job(db, job, body.model_dump(exclude_unset=True))


@router.delete("/{job_id}", response_model=JobResponse)
async def delete_job(
    job_id: UUID,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Close a job instead of deleting it: the job expires and applicants
    still in interview are rejected with an automated message.
    """
    job = await job_service.get_job(db, job_id)
    await require_company_access(db, current_user, job.company_id)
    rejected = await job_service.close_job(db, job)
    await db.commit()
    await db.refresh(job)
    logger.info(f"Job {job.id} closed by {current_user.email} ({len(rejected)} applications rejected)")
    return job


@router.post("/{job_id}/upgrade", response_model=JobUpgradeResponse)
async def upgrade_job(
    job_id: UUID,
    body: JobUpgradeRequest,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Spend credits to raise a job's tier (featured costs 1, premium 2).

    Returns:
        200: Job upgraded
        400: Not an upgrade, job closed, or not enough credits
        403: Not a member of the company
    """
    job = await job_service.get_job(db, job_id)
    await require_company_access(db, current_user, job.company_id)
    job, spent = await job_service.upgrade_job_with_credits(db, current_user, job, body.tier)
    return JobUpgradeResponse(
        job=JobResponse.model_validate(job),
        credits_spent=spent,
        credits_balance=await get_credit_balance(db, current_user.id),
    )


# ============================================================
# APPLY
# ============================================================

@router.post("/{job_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply(
    job_id: UUID,
    body: Optional[ApplyRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Apply to an active job.

    Returns:
        201: Application submitted
        400: Job is not accepting applications
        403: Caller is not a talent
        404: Job not found
        409: Already applied
    """
    body = body or ApplyRequest()
    return await application_service.apply_to_job(
        db, current_user, job_id, cover_letter=body.cover_letter, resume_url=body.resume_url
    )
