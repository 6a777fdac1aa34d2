"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from jobboard.models.job import (
    ApplicationMethod,
    ExperienceLevel,
    JobStatus,
    JobTier,
    JobType,
    SalaryPeriod,
)


class JobBase(BaseModel):
    """Fields an employer controls on a posting."""
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    is_remote: bool = False
    tags: list[str] = Field(default_factory=list)
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: str = Field("USD", pattern="^(USD|EUR|CAD|GBP)$")
    salary_period: SalaryPeriod = SalaryPeriod.YEAR
    job_type: JobType = JobType.FULL_TIME
    experience_level: Optional[ExperienceLevel] = None
    application_method: ApplicationMethod = ApplicationMethod.EMAIL
    application_email: Optional[str] = None
    external_url: Optional[str] = Field(None, max_length=500)


class JobFields(JobBase):
    application_email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("Minimum salary cannot exceed maximum salary")
        return self


class JobCreate(JobFields):
    company_id: UUID


class JobUpdate(BaseModel):
    """
    Partial update. company_id, status, tier, published_at and expires_at
    are deliberately absent: they only change through moderation and upgrades.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    is_remote: Optional[bool] = None
    tags: Optional[list[str]] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: Optional[str] = Field(None, pattern="^(USD|EUR|CAD|GBP)$")
    salary_period: Optional[SalaryPeriod] = None
    job_type: Optional[JobType] = None
    experience_level: Optional[ExperienceLevel] = None
    application_method: Optional[ApplicationMethod] = None
    application_email: Optional[EmailStr] = None
    external_url: Optional[str] = Field(None, max_length=500)


class AdminJobCreate(JobCreate):
    """Admin-posted jobs can pick their tier and go live immediately."""
    tier: JobTier = JobTier.NORMAL
    visibility_days: int = Field(30, ge=1, le=365)


class CompanySummary(BaseModel):
    id: UUID
    name: str
    slug: str
    logo: Optional[str] = None
    location: Optional[str] = None
    is_approved: bool

    model_config = ConfigDict(from_attributes=True)


class JobResponse(JobBase):
    id: UUID
    company_id: UUID
    tier: JobTier
    status: JobStatus
    visibility_days: int
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    view_count: int
    apply_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobWithCompany(JobResponse):
    company: Optional[CompanySummary] = None


class EmployerJobResponse(JobResponse):
    applications_count: int = 0


class JobUpgradeRequest(BaseModel):
    tier: JobTier


class JobUpgradeResponse(BaseModel):
    job: JobResponse
    credits_spent: int
    credits_balance: int


class CountResponse(BaseModel):
    count: int
