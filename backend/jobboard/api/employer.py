"""
Employer workspace: the caller's companies, their jobs, and the
applications those jobs received.
"""
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import require_hiring
from jobboard.database import get_db
from jobboard.models.application import ApplicationStatus
from jobboard.models.user import User
from jobboard.schemas.application import EmployerApplicationResponse
from jobboard.schemas.auth import UserResponse
from jobboard.schemas.company import CompanyResponse
from jobboard.schemas.job import EmployerJobResponse
from jobboard.services import applications as application_service
from jobboard.services import jobs as job_service
from jobboard.services.companies import list_user_companies

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/companies", response_model=List[CompanyResponse])
async def my_companies(
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    return await list_user_companies(db, current_user.id)


@router.get("/jobs", response_model=List[EmployerJobResponse])
async def my_jobs(
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """Every job of the caller's companies, any status, with application counts."""
    await job_service.expire_overdue_jobs(db)
    rows = await job_service.list_employer_jobs(db, current_user)
    return [
        EmployerJobResponse.model_validate(job).model_copy(update={"applications_count": count})
        for job, count in rows
    ]


@router.get("/applications", response_model=List[EmployerApplicationResponse])
async def my_applications(
    status: Optional[ApplicationStatus] = Query(None),
    job_id: Optional[UUID] = Query(None),
    include_closed: bool = Query(False, description="Include rejected and withdrawn"),
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Applications to the caller's jobs, newest first. Rejected and withdrawn
    applications are hidden unless a status is given or include_closed is set.
    """
    rows = await application_service.list_employer_applications(
        db, current_user, status=status, job_id=job_id, include_closed=include_closed
    )
    return [
        EmployerApplicationResponse.model_validate(application).model_copy(update={
            "applicant": UserResponse.model_validate(applicant),
            "job_title": job.title,
        })
        for application, job, applicant in rows
    ]
