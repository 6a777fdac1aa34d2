"""Database models"""
from jobboard.models.user import User, UserRole
from jobboard.models.company import Company, CompanyMember
from jobboard.models.job import Job, JobStatus, JobTier
from jobboard.models.talent_profile import TalentProfile
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.message import Message
from jobboard.models.saved import SavedJob, SavedSearch
from jobboard.models.billing import Plan, Payment, CreditLedgerEntry

__all__ = [
    "User",
    "UserRole",
    "Company",
    "CompanyMember",
    "Job",
    "JobStatus",
    "JobTier",
    "TalentProfile",
    "Application",
    "ApplicationStatus",
    "Message",
    "SavedJob",
    "SavedSearch",
    "Plan",
    "Payment",
    "CreditLedgerEntry",
]
