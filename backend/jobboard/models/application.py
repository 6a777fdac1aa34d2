from sqlalchemy import Column, DateTime, Integer, Text, String, ForeignKey, UniqueConstraint
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, enum_column, utcnow


class ApplicationStatus(str, enum.Enum):
    """Hiring pipeline stage of an application."""
    SUBMITTED = "submitted"
    REVIEWING = "reviewing"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"  # Chat with the company is open
    OFFERED = "offered"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Application(Base):
    __tablename__ = "applications"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    cover_letter = Column(Text, nullable=True)
    resume_url = Column(String(500), nullable=True)

    status = Column(
        enum_column(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
        index=True
    )
    score = Column(Integer, nullable=True)  # 0-100, set by the employer
    notes = Column(Text, nullable=True)  # Private employer notes

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        # One application per talent and job
        UniqueConstraint("job_id", "user_id", name="uq_application_job_user"),
    )
