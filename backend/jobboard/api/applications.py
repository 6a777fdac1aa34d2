"""
Applications API endpoints.

The applicant ("talent" side) sees their own applications and can
withdraw them. Company members and admins ("company" side) move them
through the pipeline. Both sides share a message thread per application.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user, require_hiring
from jobboard.database import get_db
from jobboard.models.company import Company
from jobboard.models.job import Job
from jobboard.models.user import User
from jobboard.schemas.application import (
    ApplicationResponse,
    ApplicationUpdate,
    EmployerApplicationResponse,
    MessageCreate,
    MessageResponse,
    TalentApplicationResponse,
    ThreadSummary,
)
from jobboard.schemas.auth import UserResponse
from jobboard.services import applications as application_service
from jobboard.services import messaging
from jobboard.services.jobs import build_job_with_company

logger = logging.getLogger(__name__)
router = APIRouter()


def _talent_view(application, job: Job, company: Company) -> TalentApplicationResponse:
    return TalentApplicationResponse.model_validate(application).model_copy(
        update={"job": build_job_with_company(job, company)}
    )


@router.get("", response_model=List[TalentApplicationResponse])
async def list_my_applications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's own applications with the job and company, newest first."""
    rows = await application_service.list_user_applications(db, current_user)
    return [_talent_view(application, job, company) for application, job, company in rows]


# ============================================================
# MESSAGES
# ============================================================

@router.get("/messages", response_model=List[ThreadSummary])
async def list_threads(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Conversations the caller takes part in, most recent first."""
    return await messaging.list_threads(db, current_user)


@router.get("/{application_id}/messages", response_model=List[MessageResponse])
async def get_messages(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    application, _ = await application_service.get_application_for_user(db, application_id, current_user)
    return await messaging.list_messages(db, application.id)


@router.post("/{application_id}/messages", response_model=MessageResponse, status_code=201)
async def post_message(
    application_id: UUID,
    body: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Only possible while the application is in interview."""
    application = await application_service.get_application(db, application_id)
    return await messaging.send_message(db, current_user, application, body.message)


@router.post("/{application_id}/messages/read")
async def mark_read(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    application = await application_service.get_application(db, application_id)
    updated = await messaging.mark_messages_read(db, current_user, application)
    return {"updated": updated}


@router.post("/{application_id}/close-chat", response_model=ApplicationResponse)
async def close_chat(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Company side rejects the candidate and ends the conversation."""
    application = await application_service.get_application(db, application_id)
    return await application_service.close_chat(db, current_user, application)


# ============================================================
# SINGLE APPLICATION
# ============================================================

@router.get("/{application_id}", response_model=None)
async def get_application(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    The applicant gets the job and company but not the employer's notes
    and score. The company side gets everything plus the applicant.
    """
    application, side = await application_service.get_application_for_user(db, application_id, current_user)
    job = await db.get(Job, application.job_id)
    if side == "talent":
        company = await db.get(Company, job.company_id)
        return _talent_view(application, job, company)

    applicant = await db.get(User, application.user_id)
    return EmployerApplicationResponse.model_validate(application).model_copy(update={
        "applicant": UserResponse.model_validate(applicant),
        "job_title": job.title,
    })


@router.put("/{application_id}", response_model=ApplicationResponse)
async def update_application(
    application_id: UUID,
    body: ApplicationUpdate,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """Move the application through the pipeline, score it or keep notes."""
    application = await application_service.get_application(db, application_id)
    return await application_service.update_application(
        db, current_user, application, body.model_dump(exclude_unset=True)
    )


@router.post("/{application_id}/withdraw", response_model=TalentApplicationResponse)
async def withdraw_application(
    application_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    application = await application_service.get_application(db, application_id)
    return await application_service.withdraw_application(db, current_user, application)
