"""
Stripe card payments: plan checkout and the payment webhook.

A PaymentIntent is created for a plan (optionally tied to one job) and a
pending Payment row is recorded. When Stripe reports the intent as
succeeded the payment completes exactly once and either upgrades the job
or adds the plan's credits to the ledger.
"""
import json
import logging
from typing import Optional
from uuid import UUID

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from jobboard.config import settings
from jobboard.errors import AppError, NotFoundError, PaymentProviderError, ValidationError
from jobboard.models.billing import Payment, PaymentProvider, PaymentStatus, Plan
from jobboard.models.job import Job, JobTier
from jobboard.models.user import User
from jobboard.services import credits
from jobboard.services.companies import require_company_access
from jobboard.services.jobs import apply_tier_upgrade, get_job

logger = logging.getLogger(__name__)

# Seconds a signed webhook stays valid
WEBHOOK_TOLERANCE = 300


class WebhookSignatureError(ValidationError):
    pass


async def list_active_plans(db: AsyncSession):
    result = await db.execute(
        select(Plan).where(Plan.is_active.is_(True)).order_by(Plan.price)
    )
    return result.scalars().all()


async def get_plan(db: AsyncSession, plan_id: UUID) -> Plan:
    plan = await db.get(Plan, plan_id)
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


async def create_plan(db: AsyncSession, data: dict) -> Plan:
    plan = Plan(**data)
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Created plan {plan.name} ({plan.tier.value}, {plan.price} cents)")
    return plan


async def update_plan(db: AsyncSession, plan: Plan, update_data: dict) -> Plan:
    for field, value in update_data.items():
        setattr(plan, field, value)
    await db.commit()
    await db.refresh(plan)
    return plan


def _create_stripe_intent(**params) -> dict:
    """Blocking Stripe API call; run it in the threadpool."""
    intent = stripe.PaymentIntent.create(api_key=settings.stripe_secret_key, **params)
    return {"id": intent.id, "client_secret": intent.client_secret}


async def create_payment_intent(
    db: AsyncSession,
    user: User,
    plan_id: UUID,
    job_id: Optional[UUID] = None,
) -> dict:
    """
    Start a card payment for a plan.

    Raises:
        NotFoundError: If the plan or job does not exist
        ForbiddenError: If the job belongs to a company the user cannot manage
        PaymentProviderError: If Stripe rejects the request
    """
    if not settings.stripe_secret_key:
        raise AppError("Stripe is not configured", status_code=500)

    plan = await get_plan(db, plan_id)
    if not plan.is_active:
        raise NotFoundError("Plan not found")

    metadata = {
        "userId": str(user.id),
        "planId": str(plan.id),
        "credits": str(plan.credits),
    }
    if job_id is not None:
        job = await get_job(db, job_id)
        await require_company_access(db, user, job.company_id)
        metadata["jobId"] = str(job.id)

    try:
        intent = await run_in_threadpool(
            _create_stripe_intent,
            amount=plan.price,
            currency=settings.stripe_currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe rejected payment intent for user {user.id}: {e}")
        raise PaymentProviderError(getattr(e, "user_message", None) or "Payment provider error")

    db.add(Payment(
        user_id=user.id,
        plan_id=plan.id,
        job_id=job_id,
        provider=PaymentProvider.STRIPE,
        stripe_payment_intent_id=intent["id"],
        amount=plan.price,
        currency=settings.stripe_currency,
        status=PaymentStatus.PENDING,
    ))
    await db.commit()
    logger.info(f"Created payment intent {intent['id']} for plan {plan.name} (user {user.id})")

    return {
        "client_secret": intent["client_secret"],
        "payment_intent_id": intent["id"],
        "amount": plan.price,
        "currency": settings.stripe_currency,
    }


def verify_stripe_event(payload: bytes, signature: Optional[str]) -> dict:
    """
    Check the Stripe-Signature header and decode the event.

    Raises:
        WebhookSignatureError: If the signature is missing or invalid
    """
    if not signature or not settings.stripe_webhook_secret:
        raise WebhookSignatureError("Webhook Error: missing signature")
    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"), signature, settings.stripe_webhook_secret, WEBHOOK_TOLERANCE
        )
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe webhook signature verification failed: {e}")
        raise WebhookSignatureError(f"Webhook Error: {e}")
    return json.loads(payload)


def _uuid_or_none(value) -> Optional[UUID]:
    try:
        return UUID(str(value)) if value else None
    except ValueError:
        return None


async def handle_stripe_event(db: AsyncSession, event: dict) -> str:
    """
    Apply a verified Stripe event. Returns what happened, for logging.

    payment_intent.succeeded is idempotent on the intent id.
    """
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}

    if event_type == "payment_intent.succeeded":
        return await _complete_stripe_payment(db, intent)
    if event_type == "payment_intent.payment_failed":
        payment = await _get_stripe_payment(db, intent.get("id"))
        if payment is not None and payment.status == PaymentStatus.PENDING:
            payment.status = PaymentStatus.FAILED
            await db.commit()
            logger.info(f"Payment intent {intent.get('id')} failed")
            return "failed"
        return "ignored"
    logger.info(f"Ignoring Stripe event {event_type}")
    return "ignored"


async def _get_stripe_payment(db: AsyncSession, intent_id: Optional[str]) -> Optional[Payment]:
    if not intent_id:
        return None
    result = await db.execute(select(Payment).where(Payment.stripe_payment_intent_id == intent_id))
    return result.scalar_one_or_none()


async def _complete_stripe_payment(db: AsyncSession, intent: dict) -> str:
    intent_id = intent.get("id")
    metadata = intent.get("metadata") or {}

    payment = await _get_stripe_payment(db, intent_id)
    if payment is not None and payment.status == PaymentStatus.COMPLETED:
        logger.info(f"Payment intent {intent_id} already processed")
        return "duplicate"

    user_id = _uuid_or_none(metadata.get("userId")) or (payment.user_id if payment else None)
    if user_id is None or await db.get(User, user_id) is None:
        logger.error(f"Payment intent {intent_id} has no valid user in metadata")
        return "ignored"

    plan_id = _uuid_or_none(metadata.get("planId"))
    plan = await db.get(Plan, plan_id) if plan_id else None
    job_id = _uuid_or_none(metadata.get("jobId"))

    if payment is None:
        payment = Payment(
            user_id=user_id,
            plan_id=plan.id if plan else None,
            job_id=job_id,
            provider=PaymentProvider.STRIPE,
            stripe_payment_intent_id=intent_id,
            amount=int(intent.get("amount") or 0),
            currency=intent.get("currency") or settings.stripe_currency,
        )
        db.add(payment)
    payment.status = PaymentStatus.COMPLETED
    await db.flush()

    job = await db.get(Job, job_id) if job_id else None
    if job is not None and plan is not None:
        apply_tier_upgrade(job, JobTier(plan.tier), plan.visibility_days)
        outcome = "job_upgraded"
    else:
        amount = plan.credits if plan is not None else int(metadata.get("credits") or 0)
        if amount > 0:
            await credits.add_credits(
                db, user_id, amount,
                reason=f"Purchased {amount} credits",
                tier=JobTier(plan.tier) if plan else None,
                payment_id=payment.id,
            )
        outcome = "credits_added"

    await db.commit()
    logger.info(f"Stripe payment {intent_id} completed: {outcome}")
    return outcome
