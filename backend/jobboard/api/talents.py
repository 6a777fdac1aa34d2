"""
Talent profile endpoints: the caller's own profile and the public
talent directory.
"""
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_optional_user, require_roles
from jobboard.database import get_db
from jobboard.models.talent_profile import TalentProfile
from jobboard.models.user import User, UserRole
from jobboard.schemas.job import CountResponse
from jobboard.schemas.talent import PublicTalentResponse, TalentProfileResponse, TalentProfileUpdate
from jobboard.services import talents as talent_service

logger = logging.getLogger(__name__)
router = APIRouter()

require_talent = require_roles(UserRole.TALENT)


def build_public_talent(profile: TalentProfile, user: User) -> PublicTalentResponse:
    return PublicTalentResponse.model_validate(profile).model_copy(update={
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_image_url": user.profile_image_url,
    })


@router.get("/talent/profile", response_model=TalentProfileResponse)
async def get_my_profile(
    current_user: User = Depends(require_talent),
    db: AsyncSession = Depends(get_db)
):
    profile = await talent_service.get_profile_for_user(db, current_user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Talent profile not found")
    return profile


@router.put("/talent/profile", response_model=TalentProfileResponse)
async def update_my_profile(
    body: TalentProfileUpdate,
    current_user: User = Depends(require_talent),
    db: AsyncSession = Depends(get_db)
):
    """Create or partially update the caller's profile."""
    return await talent_service.upsert_profile(db, current_user, body.model_dump(exclude_unset=True))


@router.get("/talents/public", response_model=List[PublicTalentResponse])
async def list_public_talents(
    search: Optional[str] = Query(None),
    skill: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    availability: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    rows = await talent_service.list_talents(
        db,
        public_only=True,
        search=search,
        skill=skill,
        location=location,
        availability=availability,
        job_type=job_type,
        skip=skip,
        limit=limit,
    )
    return [build_public_talent(profile, user) for profile, user in rows]


@router.get("/talents/{user_id}", response_model=PublicTalentResponse)
async def get_talent(
    user_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Public profiles for everyone; private ones only for their owner and admins."""
    profile, user = await talent_service.get_talent(db, user_id)
    if not profile.is_public and not (
        current_user is not None and (current_user.id == user.id or current_user.is_admin())
    ):
        raise HTTPException(status_code=404, detail="Talent not found")
    return build_public_talent(profile, user)


@router.get("/candidates/count", response_model=CountResponse)
async def count_candidates(db: AsyncSession = Depends(get_db)):
    return CountResponse(count=await talent_service.count_public_talents(db))
