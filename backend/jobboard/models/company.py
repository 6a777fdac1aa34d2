"""Companies and their members."""
from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
import uuid

from jobboard.database import Base
from jobboard.database_types import GUID, utcnow


class Company(Base):
    __tablename__ = "companies"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    # Links
    website = Column(String(500), nullable=True)
    twitter = Column(String(255), nullable=True)
    discord = Column(String(255), nullable=True)
    telegram = Column(String(255), nullable=True)
    logo = Column(String(500), nullable=True)

    location = Column(String(255), nullable=True)
    size = Column(String(50), nullable=True)  # e.g. "11-50"
    current_size = Column(String(50), nullable=True)
    payment_in_crypto = Column(Boolean, nullable=False, default=False)
    remote_working = Column(Boolean, nullable=False, default=False)

    # Moderation
    is_approved = Column(Boolean, nullable=False, default=False, index=True)
    is_hiring = Column(Boolean, nullable=False, default=True)
    created_by_admin = Column(Boolean, nullable=False, default=False)
    rejected_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class CompanyMember(Base):
    __tablename__ = "company_members"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    company_id = Column(GUID, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_owner = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_member"),
    )
