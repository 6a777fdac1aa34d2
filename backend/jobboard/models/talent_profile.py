from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, ForeignKey
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, StringList, enum_column, utcnow


class JobAvailability(str, enum.Enum):
    ACTIVELY_LOOKING = "actively_looking"
    OPEN_TO_OFFERS = "open_to_offers"
    NOT_AVAILABLE = "not_available"


class WorkFlexibility(str, enum.Enum):
    ONSITE = "onsite"
    REMOTE = "remote"


class TalentProfile(Base):
    """Public-facing profile of a talent user (1:1 with users)."""
    __tablename__ = "talent_profiles"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    headline = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    skills = Column(StringList, nullable=False, default=list)
    tools = Column(StringList, nullable=False, default=list)
    languages = Column(StringList, nullable=False, default=list)
    experience = Column(Text, nullable=True)
    education = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    timezone = Column(String(100), nullable=True)

    # Rates in whole currency units
    hourly_rate = Column(Integer, nullable=True)
    monthly_rate = Column(Integer, nullable=True)

    # Links
    portfolio_url = Column(String(500), nullable=True)
    github_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    telegram = Column(String(255), nullable=True)
    resume_url = Column(String(500), nullable=True)

    is_public = Column(Boolean, nullable=False, default=True, index=True)
    preferred_job_types = Column(StringList, nullable=False, default=list)
    job_availability = Column(enum_column(JobAvailability, "job_availability"), nullable=True)
    work_flexibility = Column(StringList, nullable=False, default=list)  # WorkFlexibility values

    last_active_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
