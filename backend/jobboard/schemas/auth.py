"""Authentication-related Pydantic schemas."""
import re
from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from jobboard.models.job import ApplicationMethod, ExperienceLevel, JobType, SalaryPeriod
from jobboard.models.user import UserRole

USERNAME_PATTERN = r"^[a-z0-9._-]+$"


def check_password_strength(password: str) -> str:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")
    return password


StrongPassword = Annotated[str, Field(max_length=72), AfterValidator(check_password_strength)]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RegisterRequest(BaseModel):
    """Generic sign-up. The account starts as a guest and picks a role later."""
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        value = str(value).strip().lower()
        if not re.match(USERNAME_PATTERN, value):
            raise ValueError("Username can only contain letters, numbers, dots, dashes and underscores")
        return value


class TalentRegisterRequest(BaseModel):
    email: EmailStr
    password: StrongPassword
    confirm_password: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=255)
    story: Optional[str] = None
    location: Optional[str] = None
    timezone: Optional[str] = None
    skills: str = Field(description="Comma separated list of skills")
    languages: Optional[str] = None
    hourly_rate: Optional[int] = Field(None, ge=0)
    monthly_rate: Optional[int] = Field(None, ge=0)
    linkedin_url: Optional[str] = None
    telegram: Optional[str] = None
    avatar_url: Optional[str] = None

    @model_validator(mode="after")
    def check_form(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        if not self.skill_list():
            raise ValueError("At least one skill is required")
        return self

    def skill_list(self) -> list[str]:
        return [s.strip() for s in self.skills.split(",") if s.strip()]

    def language_list(self) -> list[str]:
        return [s.strip() for s in (self.languages or "").split(",") if s.strip()]


class CompanyRegisterRequest(BaseModel):
    """Employer sign-up: account, company and the first job in one form."""
    # Account
    email: EmailStr
    password: StrongPassword
    confirm_password: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    # Company
    company_name: str = Field(min_length=1, max_length=255)
    company_description: Optional[str] = None
    company_website: Optional[str] = None
    company_location: Optional[str] = None
    company_size: Optional[str] = None
    company_logo: Optional[str] = None
    company_twitter: Optional[str] = None
    company_telegram: Optional[str] = None
    payment_in_crypto: bool = False
    remote_working: bool = False

    # First job
    job_title: str = Field(min_length=1, max_length=255)
    job_description: str = Field(min_length=1)
    job_category: Optional[str] = None
    job_location: Optional[str] = None
    is_remote: bool = False
    job_type: JobType = JobType.FULL_TIME
    experience_level: Optional[ExperienceLevel] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: str = Field("USD", pattern="^(USD|EUR|CAD|GBP)$")
    salary_period: SalaryPeriod = SalaryPeriod.YEAR
    application_method: ApplicationMethod = ApplicationMethod.EMAIL
    application_email: Optional[EmailStr] = None
    application_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_form(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("Minimum salary cannot exceed maximum salary")
        if self.application_method == ApplicationMethod.EMAIL and not self.application_email:
            raise ValueError("Application email is required when applying by email")
        if self.application_method == ApplicationMethod.EXTERNAL and not self.application_url:
            raise ValueError("Application URL is required for external applications")
        return self


class LoginRequest(BaseModel):
    """Login with either the email address or the username."""
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public representation of a user (never includes the password hash)."""
    id: UUID
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    resume_path: Optional[str] = None
    role: UserRole
    last_active_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Partial account update; blank strings clear a field."""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_image_url: Optional[str] = Field(None, max_length=500)
    resume_path: Optional[str] = Field(None, max_length=500)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: StrongPassword


class SelectRoleRequest(BaseModel):
    role: UserRole
