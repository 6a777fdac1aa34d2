"""Talent profile business logic."""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database_types import utcnow
from jobboard.errors import NotFoundError
from jobboard.models.talent_profile import TalentProfile
from jobboard.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def get_profile_for_user(db: AsyncSession, user_id: UUID) -> Optional[TalentProfile]:
    result = await db.execute(select(TalentProfile).where(TalentProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def upsert_profile(db: AsyncSession, user: User, update_data: dict) -> TalentProfile:
    """Create the profile on first save, otherwise apply a partial update."""
    profile = await get_profile_for_user(db, user.id)
    if profile is None:
        profile = TalentProfile(user_id=user.id)
        db.add(profile)

    for field, value in update_data.items():
        if field == "work_flexibility" and value is not None:
            value = [getattr(v, "value", v) for v in value]
        setattr(profile, field, value)
    profile.last_active_at = utcnow()
    profile.updated_at = utcnow()

    await db.commit()
    await db.refresh(profile)
    logger.info(f"Talent profile saved for {user.email}")
    return profile


def _matches(values: List[str], wanted: Optional[str]) -> bool:
    if not wanted:
        return True
    wanted = wanted.lower()
    return any(wanted in v.lower() for v in values)


async def list_talents(
    db: AsyncSession,
    public_only: bool = True,
    search: Optional[str] = None,
    skill: Optional[str] = None,
    location: Optional[str] = None,
    availability: Optional[str] = None,
    job_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Tuple[TalentProfile, User]]:
    """
    Talent profiles joined with their users, most recently active first.

    Skills and job types are list columns with different storage per
    database, so those two filters run on the loaded rows.
    """
    query = (
        select(TalentProfile, User)
        .join(User, User.id == TalentProfile.user_id)
        .where(User.role == UserRole.TALENT)
    )
    if public_only:
        query = query.where(TalentProfile.is_public.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            TalentProfile.headline.ilike(pattern),
            TalentProfile.bio.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))
    if location:
        query = query.where(TalentProfile.location.ilike(f"%{location}%"))
    if availability:
        query = query.where(TalentProfile.job_availability == availability)
    query = query.order_by(
        TalentProfile.last_active_at.desc().nulls_last(),
        TalentProfile.created_at.desc(),
    )

    rows = [(profile, user) for profile, user in (await db.execute(query)).all()]
    rows = [
        (profile, user) for profile, user in rows
        if _matches(profile.skills + profile.tools, skill) and _matches(profile.preferred_job_types, job_type)
    ]
    return rows[skip:skip + limit]


async def count_public_talents(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(TalentProfile.id))
        .join(User, User.id == TalentProfile.user_id)
        .where(TalentProfile.is_public.is_(True), User.role == UserRole.TALENT)
    )
    return result.scalar_one()


async def get_talent(db: AsyncSession, user_id: UUID) -> Tuple[TalentProfile, User]:
    """
    Raises:
        NotFoundError: If the user has no talent profile
    """
    result = await db.execute(
        select(TalentProfile, User)
        .join(User, User.id == TalentProfile.user_id)
        .where(TalentProfile.user_id == user_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Talent not found")
    return row[0], row[1]
