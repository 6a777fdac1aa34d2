"""Application and messaging schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.application import ApplicationStatus
from jobboard.schemas.auth import UserResponse
from jobboard.schemas.job import JobWithCompany


class ApplyRequest(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=10000)
    resume_url: Optional[str] = Field(None, max_length=500)


class ApplicationUpdate(BaseModel):
    """Employer-side update of an application."""
    status: Optional[ApplicationStatus] = None
    score: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class ApplicationResponse(BaseModel):
    id: UUID
    job_id: UUID
    user_id: UUID
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    status: ApplicationStatus
    score: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TalentApplicationResponse(ApplicationResponse):
    """What the applicant sees: their application plus the job. Employer notes are hidden."""
    notes: Optional[str] = Field(None, exclude=True)
    score: Optional[int] = Field(None, exclude=True)
    job: Optional[JobWithCompany] = None


class EmployerApplicationResponse(ApplicationResponse):
    applicant: Optional[UserResponse] = None
    job_title: Optional[str] = None


class MessageCreate(BaseModel):
    message: str = Field(min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: UUID
    application_id: UUID
    sender_id: Optional[UUID] = None
    message: str
    is_read: bool
    is_automated: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThreadSummary(BaseModel):
    application_id: UUID
    job_id: UUID
    job_title: str
    status: ApplicationStatus
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
