"""Pricing plans, payment records and the credit ledger."""
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Index
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, enum_column, utcnow
from jobboard.models.job import JobTier


class PaymentProvider(str, enum.Enum):
    STRIPE = "stripe"
    CRYPTO = "crypto"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Plan(Base):
    __tablename__ = "plans"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    tier = Column(enum_column(JobTier, "job_tier"), nullable=False, default=JobTier.NORMAL)
    visibility_days = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)  # cents
    credits = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(GUID, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)

    provider = Column(enum_column(PaymentProvider, "payment_provider"), nullable=False, default=PaymentProvider.STRIPE)
    # Idempotency keys for webhook processing
    stripe_payment_intent_id = Column(String(255), nullable=True, unique=True)
    order_id = Column(String(255), nullable=True, unique=True)  # NOWPayments order id
    provider_payment_id = Column(String(255), nullable=True)

    amount = Column(Integer, nullable=False)  # cents
    currency = Column(String(10), nullable=False, default="usd")
    status = Column(enum_column(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class CreditLedgerEntry(Base):
    """
    Append-only credit movement. amount is signed: purchases are positive,
    redemptions negative. balance is the running total after this entry.
    """
    __tablename__ = "credit_ledger"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    tier = Column(enum_column(JobTier, "job_tier"), nullable=True)
    amount = Column(Integer, nullable=False)
    balance = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    payment_id = Column(GUID, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_credit_ledger_user_created", "user_id", "created_at"),
    )
