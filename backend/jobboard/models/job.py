from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, ForeignKey, Index
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, StringList, enum_column, utcnow


class JobTier(str, enum.Enum):
    """Listing visibility class. Higher tiers sort first."""
    NORMAL = "normal"
    FEATURED = "featured"
    PREMIUM = "premium"


# Sort priority used by the listing CASE expression (lower sorts first)
TIER_PRIORITY = {
    JobTier.PREMIUM: 1,
    JobTier.FEATURED: 2,
    JobTier.NORMAL: 3,
}


class JobStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"  # Waiting for admin approval
    ACTIVE = "active"  # Publicly listed
    EXPIRED = "expired"  # Past expires_at or closed by the employer
    REJECTED = "rejected"  # Declined by an admin


class JobType(str, enum.Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"


class ExperienceLevel(str, enum.Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


class SalaryPeriod(str, enum.Enum):
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    HOUR = "hour"


class ApplicationMethod(str, enum.Enum):
    EMAIL = "email"
    EXTERNAL = "external"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)

    # Posting content
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=True)
    responsibilities = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    location = Column(String(255), nullable=True)
    is_remote = Column(Boolean, nullable=False, default=False)
    tags = Column(StringList, nullable=False, default=list)

    # Compensation
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_currency = Column(String(3), nullable=False, default="USD")
    salary_period = Column(enum_column(SalaryPeriod, "salary_period"), nullable=False, default=SalaryPeriod.YEAR)

    job_type = Column(enum_column(JobType, "job_type"), nullable=False, default=JobType.FULL_TIME)
    experience_level = Column(enum_column(ExperienceLevel, "experience_level"), nullable=True)

    # How candidates apply
    application_method = Column(
        enum_column(ApplicationMethod, "application_method"),
        nullable=False,
        default=ApplicationMethod.EMAIL
    )
    application_email = Column(String(255), nullable=True)
    external_url = Column(String(500), nullable=True)

    # Visibility
    tier = Column(enum_column(JobTier, "job_tier"), nullable=False, default=JobTier.NORMAL, index=True)
    status = Column(enum_column(JobStatus, "job_status"), nullable=False, default=JobStatus.PENDING, index=True)
    visibility_days = Column(Integer, nullable=False, default=30)
    published_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    # Counters
    view_count = Column(Integer, nullable=False, default=0)
    apply_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        # Expiry sweep: active jobs by expires_at
        Index("idx_jobs_status_expires", "status", "expires_at"),
    )

    def is_expired(self, now=None) -> bool:
        """True if an active job has passed its expiry date."""
        if self.status != JobStatus.ACTIVE or self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())
