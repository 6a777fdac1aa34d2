"""Plans, credits and payment schemas."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.billing import PaymentProvider, PaymentStatus
from jobboard.models.job import JobTier


class PlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    tier: JobTier = JobTier.NORMAL
    visibility_days: int = Field(ge=1, le=365)
    price: int = Field(ge=0, description="Price in cents")
    credits: int = Field(1, ge=0)
    is_active: bool = True


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    tier: Optional[JobTier] = None
    visibility_days: Optional[int] = Field(None, ge=1, le=365)
    price: Optional[int] = Field(None, ge=0)
    credits: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class PlanResponse(BaseModel):
    id: UUID
    name: str
    tier: JobTier
    visibility_days: int
    price: int
    credits: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CreditBalanceResponse(BaseModel):
    balance: int


class CreditLedgerResponse(BaseModel):
    id: UUID
    tier: Optional[JobTier] = None
    amount: int
    balance: int
    reason: str
    payment_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreditGrantRequest(BaseModel):
    user_id: UUID
    amount: int = Field(description="Signed amount; negative values remove credits")
    reason: str = Field(min_length=1, max_length=255)


class PaymentIntentRequest(BaseModel):
    plan_id: UUID
    job_id: Optional[UUID] = None


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    amount: int
    currency: str


class CryptoPaymentRequest(BaseModel):
    price_amount: float = Field(gt=0)
    price_currency: str = Field("usd", min_length=3, max_length=10)
    job_id: Optional[UUID] = None


class CryptoPaymentResponse(BaseModel):
    payment_id: UUID
    order_id: str
    invoice_id: Optional[str] = None
    invoice_url: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    provider: PaymentProvider
    plan_id: Optional[UUID] = None
    job_id: Optional[UUID] = None
    amount: int
    currency: str
    status: PaymentStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
