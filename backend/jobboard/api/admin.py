"""
Admin endpoints: moderation of jobs and companies, talents, plans and
credit grants. Every route requires the admin role.

Also hosts the per-role dashboard counters.
"""
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user, require_admin
from jobboard.api.talents import build_public_talent
from jobboard.database import get_db
from jobboard.models.job import JobStatus
from jobboard.models.user import User, UserRole
from jobboard.schemas.billing import (
    CreditGrantRequest,
    CreditLedgerResponse,
    PlanCreate,
    PlanResponse,
    PlanUpdate,
)
from jobboard.schemas.company import CompanyCreate, CompanyResponse
from jobboard.schemas.job import AdminJobCreate, JobResponse, JobWithCompany
from jobboard.schemas.stats import AdminStats, DashboardStats
from jobboard.schemas.talent import PublicTalentResponse, TalentProfileUpdate
from jobboard.services import companies as company_service
from jobboard.services import jobs as job_service
from jobboard.services import payments as payment_service
from jobboard.services import talents as talent_service
from jobboard.services.credits import adjust_credits
from jobboard.services.state_machine import transition_job
from jobboard.services.stats import get_admin_stats, get_dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])
dashboard_router = APIRouter()


@dashboard_router.get("/stats", response_model=DashboardStats, response_model_exclude_none=True)
async def dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Counters for the caller's role; empty for guests and admins."""
    return await get_dashboard_stats(db, current_user)


@router.get("/stats", response_model=AdminStats)
async def admin_stats(db: AsyncSession = Depends(get_db)):
    return await get_admin_stats(db)


# ============================================================
# JOBS
# ============================================================

@router.get("/jobs", response_model=List[JobWithCompany])
async def list_all_jobs(
    status: Optional[JobStatus] = Query(None),
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """Jobs in any status."""
    await job_service.expire_overdue_jobs(db)
    rows = await job_service.list_jobs(
        db, skip=skip, limit=limit, search=search, statuses=[status] if status else None
    )
    return [job_service.build_job_with_company(job, company) for job, company in rows]


@router.get("/jobs/pending", response_model=List[JobWithCompany])
async def list_pending_jobs(db: AsyncSession = Depends(get_db)):
    rows = await job_service.list_jobs(db, limit=200, statuses=[JobStatus.PENDING])
    return [job_service.build_job_with_company(job, company) for job, company in rows]


@router.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(
    body: AdminJobCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Post a job that goes live immediately with the given tier and window."""
    await company_service.get_company(db, body.company_id)
    job = await job_service.create_job(db, current_user, body.model_dump())
    transition_job(job, JobStatus.ACTIVE, visibility_days=body.visibility_days)
    await db.commit()
    await db.refresh(job)
    logger.info(f"Admin {current_user.email} published job {job.id}")
    return job


@router.post("/jobs/{job_id}/approve", response_model=JobResponse)
async def approve_job(job_id: UUID, db: AsyncSession = Depends(get_db)):
    job = await job_service.get_job(db, job_id)
    return await job_service.approve_job(db, job)


@router.post("/jobs/{job_id}/reject", response_model=JobResponse)
async def reject_job(job_id: UUID, db: AsyncSession = Depends(get_db)):
    job = await job_service.get_job(db, job_id)
    return await job_service.reject_job(db, job)


# ============================================================
# COMPANIES
# ============================================================

@router.get("/companies", response_model=List[CompanyResponse])
async def list_all_companies(
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    return await company_service.list_companies(
        db, search=search, approved_only=False, skip=skip, limit=limit
    )


@router.get("/companies/pending", response_model=List[CompanyResponse])
async def list_pending_companies(db: AsyncSession = Depends(get_db)):
    return await company_service.list_pending_companies(db)


@router.post("/companies", response_model=CompanyResponse, status_code=201)
async def create_company(
    body: CompanyCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Admin-created companies are approved and have no members until someone joins."""
    company = await company_service.create_company(
        db, body.model_dump(), approved=True, created_by_admin=True
    )
    await db.commit()
    await db.refresh(company)
    return company


@router.post("/companies/{company_id}/approve", response_model=CompanyResponse)
async def approve_company(company_id: UUID, db: AsyncSession = Depends(get_db)):
    company = await company_service.get_company(db, company_id)
    return await company_service.set_company_approval(db, company, True)


@router.post("/companies/{company_id}/reject", response_model=CompanyResponse)
async def reject_company(company_id: UUID, db: AsyncSession = Depends(get_db)):
    company = await company_service.get_company(db, company_id)
    return await company_service.set_company_approval(db, company, False)


# ============================================================
# TALENTS
# ============================================================

@router.get("/talents", response_model=List[PublicTalentResponse])
async def list_all_talents(
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    """Every talent profile, public or not."""
    rows = await talent_service.list_talents(
        db, public_only=False, search=search, skip=skip, limit=limit
    )
    return [build_public_talent(profile, user) for profile, user in rows]


@router.put("/talents/{user_id}", response_model=PublicTalentResponse)
async def update_talent(
    user_id: UUID,
    body: TalentProfileUpdate,
    db: AsyncSession = Depends(get_db)
):
    user = await db.get(User, user_id)
    if user is None or user.role != UserRole.TALENT:
        raise HTTPException(status_code=404, detail="Talent not found")
    profile = await talent_service.upsert_profile(db, user, body.model_dump(exclude_unset=True))
    return build_public_talent(profile, user)


# ============================================================
# PLANS & CREDITS
# ============================================================

@router.post("/plans", response_model=PlanResponse, status_code=201)
async def create_plan(body: PlanCreate, db: AsyncSession = Depends(get_db)):
    return await payment_service.create_plan(db, body.model_dump())


@router.put("/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(plan_id: UUID, body: PlanUpdate, db: AsyncSession = Depends(get_db)):
    plan = await payment_service.get_plan(db, plan_id)
    return await payment_service.update_plan(db, plan, body.model_dump(exclude_unset=True))


@router.post("/credits", response_model=CreditLedgerResponse, status_code=201)
async def grant_credits(
    body: CreditGrantRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Grant (or with a negative amount, remove) credits with an audit reason."""
    if await db.get(User, body.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    reason = f"{body.reason} (by {current_user.email})"[:255]
    entry = await adjust_credits(db, body.user_id, body.amount, reason)
    await db.commit()
    await db.refresh(entry)
    return entry
