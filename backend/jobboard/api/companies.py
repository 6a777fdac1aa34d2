"""
Companies API endpoints.
"""
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_optional_user, require_hiring
from jobboard.database import get_db
from jobboard.models.job import JobStatus
from jobboard.models.user import User
from jobboard.schemas.company import (
    CompanyCreate,
    CompanyDetail,
    CompanyMemberResponse,
    CompanyResponse,
    CompanyUpdate,
)
from jobboard.schemas.job import CountResponse, JobResponse
from jobboard.services import companies as company_service
from jobboard.services import jobs as job_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[CompanyResponse])
async def list_companies(
    search: Optional[str] = Query(None, description="Matches name or location"),
    is_hiring: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Approved companies, alphabetically."""
    return await company_service.list_companies(
        db, search=search, is_hiring=is_hiring, skip=skip, limit=limit
    )


@router.get("/count", response_model=CountResponse)
async def count_companies(db: AsyncSession = Depends(get_db)):
    return CountResponse(count=await company_service.count_companies(db))


@router.get("/{slug}", response_model=CompanyDetail)
async def get_company(
    slug: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Company page with its active jobs. Unapproved companies are only
    visible to their members and admins.
    """
    company = await company_service.get_company_by_slug(db, slug)
    if company is None or (
        not company.is_approved and not await company_service.can_manage_company(db, current_user, company.id)
    ):
        raise HTTPException(status_code=404, detail="Company not found")

    await job_service.expire_overdue_jobs(db)
    rows = await job_service.list_jobs(db, limit=100, company_id=company.id, statuses=[JobStatus.ACTIVE])
    detail = CompanyDetail.model_validate(company)
    detail.jobs = [JobResponse.model_validate(job) for job, _ in rows]
    return detail


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    body: CompanyCreate,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a company owned by the caller. It stays out of the public list
    until an admin approves it.
    """
    company = await company_service.create_company(db, body.model_dump(), owner=current_user)
    await db.commit()
    await db.refresh(company)
    return company


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: UUID,
    body: CompanyUpdate,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    company = await company_service.get_company(db, company_id)
    await company_service.require_company_access(db, current_user, company.id)
    return await company_service.update_company(db, company, body.model_dump(exclude_unset=True))


@router.get("/{company_id}/members", response_model=List[CompanyMemberResponse])
async def list_members(
    company_id: UUID,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    await company_service.get_company(db, company_id)
    await company_service.require_company_access(db, current_user, company_id)
    return await company_service.list_company_members(db, company_id)
