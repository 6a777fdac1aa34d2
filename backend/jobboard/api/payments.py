"""
Plans, credits and payment endpoints (Stripe and NOWPayments).

Webhooks are the only way credits are bought: the client never reports
a successful payment itself.
"""
import json
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user, require_hiring
from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.schemas.billing import (
    CreditBalanceResponse,
    CreditLedgerResponse,
    CryptoPaymentRequest,
    CryptoPaymentResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PlanResponse,
)
from jobboard.services import credits as credit_service
from jobboard.services import nowpayments
from jobboard.services import payments as payment_service

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================
# PLANS & CREDITS
# ============================================================

@router.get("/plans", response_model=List[PlanResponse])
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Active plans, cheapest first."""
    return await payment_service.list_active_plans(db)


@router.get("/plans/{plan_id}", response_model=PlanResponse)
async def get_plan(plan_id: UUID, db: AsyncSession = Depends(get_db)):
    return await payment_service.get_plan(db, plan_id)


@router.get("/credits", response_model=CreditBalanceResponse)
async def get_credits(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return CreditBalanceResponse(balance=await credit_service.get_credit_balance(db, current_user.id))


@router.get("/credits/history", response_model=List[CreditLedgerResponse])
async def get_credit_history(
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await credit_service.get_credit_history(db, current_user.id, limit=limit)


# ============================================================
# STRIPE
# ============================================================

@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a card payment for a plan. With a job_id the purchase upgrades
    that job, otherwise it buys the plan's credits.
    """
    return await payment_service.create_payment_intent(
        db, current_user, body.plan_id, job_id=body.job_id
    )


@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Stripe event receiver. The raw body is needed to check the signature.

    Raises:
        HTTPException 400: Missing or invalid Stripe-Signature
    """
    payload = await request.body()
    event = payment_service.verify_stripe_event(payload, request.headers.get("stripe-signature"))
    outcome = await payment_service.handle_stripe_event(db, event)
    logger.info(f"Stripe event {event.get('type')} ({event.get('id')}): {outcome}")
    return {"received": True}


# ============================================================
# NOWPAYMENTS
# ============================================================

@router.post("/crypto/create-payment", response_model=CryptoPaymentResponse)
async def create_crypto_payment(
    body: CryptoPaymentRequest,
    current_user: User = Depends(require_hiring),
    db: AsyncSession = Depends(get_db)
):
    return await nowpayments.create_crypto_payment(
        db, current_user, body.price_amount, body.price_currency, job_id=body.job_id
    )


@router.get("/crypto/payment/{payment_id}")
async def get_crypto_payment_status(
    payment_id: str,
    current_user: User = Depends(get_current_user)
):
    """Status of a NOWPayments payment, straight from the provider."""
    return await nowpayments.get_client().get_payment_status(payment_id)


@router.get("/crypto/currencies")
async def get_crypto_currencies():
    return await nowpayments.get_client().get_currencies()


@router.post("/crypto/webhook")
async def crypto_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """NOWPayments IPN receiver."""
    try:
        payload = json.loads(await request.body())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    nowpayments.verify_ipn_signature(payload, request.headers.get("x-nowpayments-sig"))
    outcome = await nowpayments.handle_ipn(db, payload)
    return {"received": True, "result": outcome}
