"""Saved jobs and saved searches."""
import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import ConflictError, NotFoundError
from jobboard.models.job import Job, JobStatus
from jobboard.models.saved import SavedJob, SavedSearch
from jobboard.models.user import User

logger = logging.getLogger(__name__)


async def list_saved_jobs(db: AsyncSession, user: User) -> Sequence[SavedJob]:
    result = await db.execute(
        select(SavedJob).where(SavedJob.user_id == user.id).order_by(SavedJob.created_at.desc())
    )
    return result.scalars().all()


async def save_job(db: AsyncSession, user: User, job_id: UUID) -> SavedJob:
    """
    Bookmark an active job.

    Raises:
        NotFoundError: If the job does not exist or is not active
        ConflictError: If it is already saved
    """
    job = await db.get(Job, job_id)
    if job is None or job.status != JobStatus.ACTIVE:
        raise NotFoundError("Job not found")

    existing = await db.execute(
        select(SavedJob.id).where(SavedJob.user_id == user.id, SavedJob.job_id == job_id)
    )
    if existing.first() is not None:
        raise ConflictError("Job already saved")

    saved = SavedJob(user_id=user.id, job_id=job_id)
    db.add(saved)
    await db.commit()
    await db.refresh(saved)
    return saved


async def unsave_job(db: AsyncSession, user: User, job_id: UUID) -> None:
    result = await db.execute(
        delete(SavedJob).where(SavedJob.user_id == user.id, SavedJob.job_id == job_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Saved job not found")
    await db.commit()


async def list_saved_searches(db: AsyncSession, user: User) -> Sequence[SavedSearch]:
    result = await db.execute(
        select(SavedSearch).where(SavedSearch.user_id == user.id).order_by(SavedSearch.created_at.desc())
    )
    return result.scalars().all()


async def create_saved_search(db: AsyncSession, user: User, data: dict) -> SavedSearch:
    search = SavedSearch(user_id=user.id, **data)
    db.add(search)
    await db.commit()
    await db.refresh(search)
    logger.info(f"User {user.email} saved search '{search.name}'")
    return search


async def delete_saved_search(db: AsyncSession, user: User, search_id: UUID) -> None:
    search = await db.get(SavedSearch, search_id)
    if search is None or search.user_id != user.id:
        raise NotFoundError("Saved search not found")
    await db.delete(search)
    await db.commit()
