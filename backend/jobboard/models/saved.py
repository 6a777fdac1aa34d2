"""User-scoped bookmarks: saved jobs and saved searches."""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, JSON, enum_column, utcnow


class AlertFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_saved_job"),
    )


class SavedSearch(Base):
    __tablename__ = "saved_searches"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # Same keys as the job listing query: search, category, type, level, remote
    filters = Column(JSON, nullable=False, default=dict)
    alert_frequency = Column(enum_column(AlertFrequency, "alert_frequency"), nullable=True)
    last_alert_sent = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
