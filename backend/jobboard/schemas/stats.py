"""Dashboard counters."""
from typing import Optional

from pydantic import BaseModel


class DashboardStats(BaseModel):
    # Talent
    applications_count: Optional[int] = None
    saved_jobs_count: Optional[int] = None
    interviews_count: Optional[int] = None
    # Employer / recruiter
    active_jobs_count: Optional[int] = None
    total_views: Optional[int] = None
    total_applications: Optional[int] = None
    credits_balance: Optional[int] = None


class AdminStats(BaseModel):
    total_jobs: int
    total_companies: int
    total_users: int
    pending_jobs: int
    pending_companies: int
