"""Company-related Pydantic schemas."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from jobboard.schemas.job import JobResponse


class CompanyFields(BaseModel):
    description: Optional[str] = None
    website: Optional[str] = Field(None, max_length=500)
    twitter: Optional[str] = Field(None, max_length=255)
    discord: Optional[str] = Field(None, max_length=255)
    telegram: Optional[str] = Field(None, max_length=255)
    logo: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    size: Optional[str] = Field(None, max_length=50)
    current_size: Optional[str] = Field(None, max_length=50)
    payment_in_crypto: bool = False
    remote_working: bool = False
    is_hiring: bool = True


class CompanyCreate(CompanyFields):
    name: str = Field(min_length=1, max_length=255)


class CompanyUpdate(BaseModel):
    """Partial update. Approval is admin-only and not part of this schema."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    website: Optional[str] = Field(None, max_length=500)
    twitter: Optional[str] = Field(None, max_length=255)
    discord: Optional[str] = Field(None, max_length=255)
    telegram: Optional[str] = Field(None, max_length=255)
    logo: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    size: Optional[str] = Field(None, max_length=50)
    current_size: Optional[str] = Field(None, max_length=50)
    payment_in_crypto: Optional[bool] = None
    remote_working: Optional[bool] = None
    is_hiring: Optional[bool] = None


class CompanyResponse(CompanyFields):
    id: UUID
    name: str
    slug: str
    is_approved: bool
    created_by_admin: bool
    rejected_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyDetail(CompanyResponse):
    jobs: List[JobResponse] = Field(default_factory=list)


class CompanyMemberResponse(BaseModel):
    id: UUID
    company_id: UUID
    user_id: UUID
    is_owner: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
