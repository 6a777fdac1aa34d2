"""
Applying to jobs and moving applications through the hiring pipeline.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import Company, CompanyMember
from jobboard.models.job import Job, JobStatus
from jobboard.models.user import User, UserRole
from jobboard.services.companies import require_company_access
from jobboard.services.email import email_service
from jobboard.services.jobs import expire_overdue_jobs, get_job
from jobboard.services.messaging import CHAT_CLOSED_MESSAGE, post_automated_message, require_participant
from jobboard.services.object_storage import grant_company_read_access
from jobboard.services.state_machine import transition_application

logger = logging.getLogger(__name__)

# Statuses hidden from the employer list unless asked for
CLOSED_STATUSES = (ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN)


async def get_application(db: AsyncSession, application_id: UUID) -> Application:
    """
    Raises:
        NotFoundError: If no application has this id
    """
    application = await db.get(Application, application_id)
    if not application:
        raise NotFoundError("Application not found")
    return application


async def get_application_for_user(db: AsyncSession, application_id: UUID, user: User) -> Tuple[Application, str]:
    """
    Load an application the user may see and which side of it they are on
    ("talent" or "company").
    """
    application = await get_application(db, application_id)
    side = await require_participant(db, user, application)
    return application, side


async def apply_to_job(
    db: AsyncSession,
    user: User,
    job_id: UUID,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
) -> Application:
    """
    Submit an application.

    The job must still be active after the expiry sweep. A user applies
    once per job. Without an explicit resume the user's uploaded resume is
    attached, and a private resume object the user owns is opened up to the
    company.

    Raises:
        ForbiddenError: If the user is not a talent
        NotFoundError: If the job does not exist
        ValidationError: If the job is not accepting applications
        ConflictError: If the user already applied
    """
    if user.role != UserRole.TALENT:
        raise ForbiddenError("Only talent accounts can apply to jobs")

    await expire_overdue_jobs(db)
    job = await get_job(db, job_id)
    if job.status != JobStatus.ACTIVE:
        raise ValidationError("This job is no longer accepting applications")

    existing = await db.execute(
        select(Application.id).where(Application.job_id == job.id, Application.user_id == user.id)
    )
    if existing.first() is not None:
        raise ConflictError("You have already applied to this job")

    application = Application(
        job_id=job.id,
        user_id=user.id,
        cover_letter=cover_letter,
        resume_url=resume_url or user.resume_path,
    )
    db.add(application)
    await db.execute(
        update(Job).where(Job.id == job.id).values(apply_count=Job.apply_count + 1)
    )
    await db.commit()
    await db.refresh(application)
    logger.info(f"User {user.email} applied to job {job.id}")

    if application.resume_url:
        await grant_company_read_access(application.resume_url, job.company_id, user.id)
    if job.application_email:
        await email_service.send_new_application_email(
            job.application_email, job.title, user.display_name, str(application.id)
        )
    return application


async def list_user_applications(db: AsyncSession, user: User) -> List[Tuple[Application, Job, Company]]:
    result = await db.execute(
        select(Application, Job, Company)
        .join(Job, Job.id == Application.job_id)
        .join(Company, Company.id == Job.company_id)
        .where(Application.user_id == user.id)
        .order_by(Application.created_at.desc())
    )
    return [tuple(row) for row in result.all()]


async def list_employer_applications(
    db: AsyncSession,
    user: User,
    status: Optional[ApplicationStatus] = None,
    job_id: Optional[UUID] = None,
    include_closed: bool = False,
) -> List[Tuple[Application, Job, User]]:
    """Applications to jobs of the user's companies (every company for admins)."""
    query = (
        select(Application, Job, User)
        .join(Job, Job.id == Application.job_id)
        .join(User, User.id == Application.user_id)
    )
    if not user.is_admin():
        member_company_ids = select(CompanyMember.company_id).where(CompanyMember.user_id == user.id)
        query = query.where(Job.company_id.in_(member_company_ids))
    if status is not None:
        query = query.where(Application.status == status)
    elif not include_closed:
        query = query.where(Application.status.not_in(CLOSED_STATUSES))
    if job_id is not None:
        query = query.where(Application.job_id == job_id)

    result = await db.execute(query.order_by(Application.created_at.desc()))
    return [tuple(row) for row in result.all()]


async def update_application(
    db: AsyncSession,
    user: User,
    application: Application,
    update_data: dict,
) -> Application:
    """
    Employer-side update: pipeline status, score and private notes.
    The applicant is emailed when the status changes.

    Raises:
        ForbiddenError: If the user cannot manage the job's company
        InvalidTransitionError: If the status change is not allowed
    """
    if not user.can_hire():
        raise ForbiddenError("Insufficient permissions")
    job = await get_job(db, application.job_id)
    await require_company_access(db, user, job.company_id)

    previous_status = ApplicationStatus(application.status)
    new_status = update_data.pop("status", None)
    if new_status is not None:
        transition_application(application, ApplicationStatus(new_status))
    for field, value in update_data.items():
        setattr(application, field, value)

    await db.commit()
    await db.refresh(application)

    if application.status != previous_status:
        await _notify_status_change(db, application, job)
    return application


async def withdraw_application(db: AsyncSession, user: User, application: Application) -> Application:
    if application.user_id != user.id:
        raise ForbiddenError("Only the applicant can withdraw an application")
    transition_application(application, ApplicationStatus.WITHDRAWN)
    await db.commit()
    await db.refresh(application)
    return application


async def close_chat(db: AsyncSession, user: User, application: Application) -> Application:
    """
    Company side ends the conversation: the application is rejected and
    the canned rejection message is posted.

    Raises:
        ForbiddenError: If the user is not on the company side
        ConflictError: If the application is already closed
    """
    side = await require_participant(db, user, application)
    if side != "company":
        raise ForbiddenError("Only the company can close this conversation")
    if application.status in CLOSED_STATUSES:
        raise ConflictError("This conversation is already closed")

    transition_application(application, ApplicationStatus.REJECTED)
    await post_automated_message(db, application, CHAT_CLOSED_MESSAGE)
    await db.commit()
    await db.refresh(application)
    logger.info(f"Chat closed on application {application.id} by {user.email}")

    job = await get_job(db, application.job_id)
    await _notify_status_change(db, application, job)
    return application


async def _notify_status_change(db: AsyncSession, application: Application, job: Job) -> None:
    applicant = await db.get(User, application.user_id)
    company = await db.get(Company, job.company_id)
    if applicant is None or company is None:
        return
    await email_service.send_application_status_email(
        applicant.email, job.title, company.name, ApplicationStatus(application.status).value
    )
