"""Talent profile schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.talent_profile import JobAvailability, WorkFlexibility


class TalentProfileUpdate(BaseModel):
    """Upsert body for the caller's own profile (partial)."""
    headline: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    tools: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    timezone: Optional[str] = Field(None, max_length=100)
    hourly_rate: Optional[int] = Field(None, ge=0)
    monthly_rate: Optional[int] = Field(None, ge=0)
    portfolio_url: Optional[str] = Field(None, max_length=500)
    github_url: Optional[str] = Field(None, max_length=500)
    linkedin_url: Optional[str] = Field(None, max_length=500)
    telegram: Optional[str] = Field(None, max_length=255)
    resume_url: Optional[str] = Field(None, max_length=500)
    is_public: Optional[bool] = None
    preferred_job_types: Optional[List[str]] = None
    job_availability: Optional[JobAvailability] = None
    work_flexibility: Optional[List[WorkFlexibility]] = None


class TalentProfileResponse(BaseModel):
    id: UUID
    user_id: UUID
    headline: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    education: Optional[str] = None
    location: Optional[str] = None
    timezone: Optional[str] = None
    hourly_rate: Optional[int] = None
    monthly_rate: Optional[int] = None
    portfolio_url: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    telegram: Optional[str] = None
    resume_url: Optional[str] = None
    is_public: bool
    preferred_job_types: List[str] = Field(default_factory=list)
    job_availability: Optional[JobAvailability] = None
    work_flexibility: List[str] = Field(default_factory=list)
    last_active_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicTalentResponse(TalentProfileResponse):
    """Profile plus the display fields of its user."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
