"""
Crypto payments through NOWPayments.

Invoices are created over the NOWPayments REST API; the result arrives
later as an IPN callback signed with HMAC-SHA512 over the key-sorted JSON
body. A finished payment either buys one credit or features a job for
CRYPTO_FEATURE_DAYS days.
"""
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional
from uuid import UUID

import aiohttp
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.errors import AppError, PaymentProviderError, ValidationError
from jobboard.models.billing import Payment, PaymentProvider, PaymentStatus
from jobboard.models.job import Job, JobTier
from jobboard.models.user import User
from jobboard.services import credits
from jobboard.services.companies import require_company_access
from jobboard.services.jobs import apply_tier_upgrade, get_job

logger = logging.getLogger(__name__)

CRYPTO_FEATURE_DAYS = 30
CRYPTO_CREDITS_PER_PURCHASE = 1
SUCCESS_STATUSES = ("finished", "confirmed")
FAILURE_STATUSES = ("failed", "expired", "refunded")
REQUEST_TIMEOUT_S = 15


class NOWPaymentsClient:
    """Thin async wrapper over the NOWPayments REST API."""

    def __init__(self, api_key: str, base_url: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        headers = {"x-api-key": self.api_key, "Content-Type": "application/json"}
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_S)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, f"{self.base_url}{path}", json=payload, headers=headers) as resp:
                    data = await resp.json(content_type=None)
                    if resp.status >= 400:
                        message = (data or {}).get("message") if isinstance(data, dict) else None
                        logger.error(f"NOWPayments {method} {path} failed: {resp.status} {data}")
                        raise PaymentProviderError(message or "Failed to reach crypto payment provider")
                    return data
        except aiohttp.ClientError as e:
            logger.error(f"NOWPayments {method} {path} error: {e}")
            raise PaymentProviderError("Failed to reach crypto payment provider")

    async def create_invoice(self, **payload) -> Dict[str, Any]:
        return await self._request("POST", "/invoice", payload)

    async def get_payment_status(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/payment/{payment_id}")

    async def get_currencies(self) -> Dict[str, Any]:
        return await self._request("GET", "/currencies")


def get_client() -> NOWPaymentsClient:
    if not settings.nowpayments_api_key:
        raise AppError("NOWPayments API key not configured", status_code=500)
    return NOWPaymentsClient(settings.nowpayments_api_key, settings.nowpayments_api_url)


async def create_crypto_payment(
    db: AsyncSession,
    user: User,
    price_amount: float,
    price_currency: str,
    job_id: Optional[UUID] = None,
) -> dict:
    """
    Create a hosted invoice and a pending payment keyed by order id.

    Raises:
        AppError 500: If NOWPayments is not configured
        ForbiddenError: If the job belongs to a company the user cannot manage
        PaymentProviderError: If the invoice cannot be created
    """
    client = get_client()

    timestamp = int(time.time() * 1000)
    if job_id is not None:
        job = await get_job(db, job_id)
        await require_company_access(db, user, job.company_id)
        order_id = f"job-{job_id}-{timestamp}"
        order_description = f"Featured Job - {job_id}"
    else:
        order_id = f"credit-{user.id}-{timestamp}"
        order_description = f"Credit Purchase - User {user.id}"

    invoice = await client.create_invoice(
        price_amount=price_amount,
        price_currency=price_currency.lower(),
        order_id=order_id,
        order_description=order_description,
        ipn_callback_url=f"{settings.app_url.rstrip('/')}/api/crypto/webhook",
        success_url=settings.get_frontend_url(),
        cancel_url=settings.get_frontend_url(),
    )

    payment = Payment(
        user_id=user.id,
        job_id=job_id,
        provider=PaymentProvider.CRYPTO,
        order_id=order_id,
        provider_payment_id=str(invoice.get("id")) if invoice.get("id") else None,
        amount=int(round(price_amount * 100)),
        currency=price_currency.lower(),
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    logger.info(f"Created NOWPayments invoice {invoice.get('id')} for order {order_id}")

    return {
        "payment_id": payment.id,
        "order_id": order_id,
        "invoice_id": str(invoice.get("id")) if invoice.get("id") else None,
        "invoice_url": invoice.get("invoice_url"),
    }


def sign_ipn_payload(payload: dict, secret: str) -> str:
    """HMAC-SHA512 of the JSON body with keys sorted, as NOWPayments signs it."""
    message = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha512).hexdigest()


def verify_ipn_signature(payload: dict, signature: Optional[str]) -> None:
    """
    Raises:
        ValidationError: If a secret is configured and the signature does not match
    """
    secret = settings.nowpayments_ipn_secret
    if not secret:
        logger.warning("NOWPAYMENTS_IPN_SECRET not set, accepting unsigned IPN")
        return
    if not signature or not hmac.compare_digest(sign_ipn_payload(payload, secret), signature):
        logger.warning("NOWPayments IPN signature mismatch")
        raise ValidationError("Invalid signature")


async def handle_ipn(db: AsyncSession, payload: dict) -> str:
    """
    Apply an IPN callback. Returns what happened, for logging.

    Only the pending payment recorded at invoice creation is completed, and
    only once, so repeated callbacks are harmless.
    """
    order_id = payload.get("order_id")
    status = payload.get("payment_status")
    logger.info(f"NOWPayments IPN for order {order_id}: {status}")

    if not order_id:
        return "ignored"

    result = await db.execute(select(Payment).where(Payment.order_id == str(order_id)))
    payment = result.scalar_one_or_none()
    if payment is None:
        logger.warning(f"IPN for unknown order {order_id}")
        return "ignored"
    if payment.status != PaymentStatus.PENDING:
        return "duplicate"

    if status in FAILURE_STATUSES:
        payment.status = PaymentStatus.FAILED
        await db.commit()
        return "failed"
    if status not in SUCCESS_STATUSES:
        return "pending"

    payment.status = PaymentStatus.COMPLETED
    if payload.get("payment_id"):
        payment.provider_payment_id = str(payload["payment_id"])

    job = await db.get(Job, payment.job_id) if payment.job_id else None
    if job is not None:
        apply_tier_upgrade(job, JobTier.FEATURED, CRYPTO_FEATURE_DAYS)
        outcome = "job_upgraded"
    else:
        await credits.add_credits(
            db, payment.user_id, CRYPTO_CREDITS_PER_PURCHASE,
            reason="Crypto credit purchase",
            payment_id=payment.id,
        )
        outcome = "credits_added"

    await db.commit()
    logger.info(f"Crypto order {order_id} completed: {outcome}")
    return outcome
