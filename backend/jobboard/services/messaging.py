"""
Per-application chat between the applicant and the hiring company.
"""
import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import ConflictError, ForbiddenError
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import CompanyMember
from jobboard.models.job import Job
from jobboard.models.message import Message
from jobboard.models.user import User

logger = logging.getLogger(__name__)

# Canned messages posted without a sender
JOB_CLOSED_MESSAGE = (
    "Thank you for your interest. This position has been closed and is no longer "
    "accepting candidates, so we will not be moving forward with your application."
)
CHAT_CLOSED_MESSAGE = (
    "Thank you for taking the time to speak with us. After careful consideration we "
    "have decided not to move forward with your application. We wish you the best "
    "in your search."
)


async def post_automated_message(db: AsyncSession, application: Application, text: str) -> Message:
    """Append a system message to the thread. The caller commits."""
    message = Message(application_id=application.id, sender_id=None, message=text)
    db.add(message)
    await db.flush()
    return message


async def get_participant_side(db: AsyncSession, user: User, application: Application) -> Optional[str]:
    """
    "talent" for the applicant, "company" for company members and admins,
    None for everyone else.
    """
    if application.user_id == user.id:
        return "talent"
    if user.is_admin():
        return "company"
    result = await db.execute(
        select(CompanyMember.id)
        .join(Job, Job.company_id == CompanyMember.company_id)
        .where(Job.id == application.job_id, CompanyMember.user_id == user.id)
    )
    if result.first() is not None:
        return "company"
    return None


async def require_participant(db: AsyncSession, user: User, application: Application) -> str:
    side = await get_participant_side(db, user, application)
    if side is None:
        logger.warning(f"User {user.email} denied access to application {application.id}")
        raise ForbiddenError("You are not part of this conversation")
    return side


async def list_messages(db: AsyncSession, application_id: UUID) -> Sequence[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.application_id == application_id)
        .order_by(Message.created_at, Message.id)
    )
    return result.scalars().all()


async def send_message(db: AsyncSession, user: User, application: Application, text: str) -> Message:
    """
    Post a message from a participant. The thread only accepts messages
    while the application is in interview.

    Raises:
        ForbiddenError: If the user is not a participant
        ConflictError: If the conversation is not open
    """
    await require_participant(db, user, application)
    if application.status != ApplicationStatus.INTERVIEW:
        raise ConflictError(
            f"Conversation is closed (application is {ApplicationStatus(application.status).value})"
        )

    message = Message(application_id=application.id, sender_id=user.id, message=text.strip())
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message


async def mark_messages_read(db: AsyncSession, user: User, application: Application) -> int:
    """Mark the other side's messages (and system messages) read. Returns rows updated."""
    await require_participant(db, user, application)
    result = await db.execute(
        update(Message)
        .where(
            Message.application_id == application.id,
            Message.is_read.is_(False),
            (Message.sender_id.is_(None)) | (Message.sender_id != user.id),
        )
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount


async def list_threads(db: AsyncSession, user: User) -> List[dict]:
    """
    Conversation summaries for the user: their own applications plus the
    applications to jobs of companies they belong to. Only threads that
    have messages are returned, most recent first.
    """
    member_company_ids = select(CompanyMember.company_id).where(CompanyMember.user_id == user.id)
    query = (
        select(Application, Job)
        .join(Job, Job.id == Application.job_id)
        .where((Application.user_id == user.id) | (Job.company_id.in_(member_company_ids)))
    )
    rows = (await db.execute(query)).all()
    if not rows:
        return []

    application_ids = [application.id for application, _ in rows]
    unread_rows = await db.execute(
        select(Message.application_id, func.count(Message.id))
        .where(
            Message.application_id.in_(application_ids),
            Message.is_read.is_(False),
            (Message.sender_id.is_(None)) | (Message.sender_id != user.id),
        )
        .group_by(Message.application_id)
    )
    unread = {application_id: count for application_id, count in unread_rows.all()}

    latest = (
        select(Message.application_id, func.max(Message.created_at).label("latest_at"))
        .where(Message.application_id.in_(application_ids))
        .group_by(Message.application_id)
        .subquery()
    )
    last_rows = await db.execute(
        select(Message).join(
            latest,
            and_(
                Message.application_id == latest.c.application_id,
                Message.created_at == latest.c.latest_at,
            ),
        )
    )
    last_messages = {message.application_id: message for message in last_rows.scalars().all()}

    threads = []
    for application, job in rows:
        last = last_messages.get(application.id)
        if last is None:
            continue
        threads.append({
            "application_id": application.id,
            "job_id": job.id,
            "job_title": job.title,
            "status": application.status,
            "last_message": last,
            "unread_count": unread.get(application.id, 0),
        })
    threads.sort(key=lambda t: t["last_message"].created_at, reverse=True)
    return threads
