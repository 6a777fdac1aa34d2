"""
Credit ledger.

The ledger is append-only: every movement is a row with a signed amount and
a user's balance is the SUM of their amounts. Each row also stores the
running balance right after it, which makes the history readable without
re-aggregating.
"""
import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import InsufficientCreditsError, ValidationError
from jobboard.models.billing import CreditLedgerEntry
from jobboard.models.job import JobTier

logger = logging.getLogger(__name__)


async def get_credit_balance(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(CreditLedgerEntry.amount), 0)).where(
            CreditLedgerEntry.user_id == user_id
        )
    )
    return int(result.scalar_one())


async def _append_entry(
    db: AsyncSession,
    user_id: UUID,
    amount: int,
    reason: str,
    tier: Optional[JobTier] = None,
    payment_id: Optional[UUID] = None,
    job_id: Optional[UUID] = None,
) -> CreditLedgerEntry:
    balance = await get_credit_balance(db, user_id)
    entry = CreditLedgerEntry(
        user_id=user_id,
        amount=amount,
        balance=balance + amount,
        reason=reason,
        tier=tier,
        payment_id=payment_id,
        job_id=job_id,
    )
    db.add(entry)
    await db.flush()
    return entry


async def add_credits(
    db: AsyncSession,
    user_id: UUID,
    amount: int,
    reason: str,
    tier: Optional[JobTier] = None,
    payment_id: Optional[UUID] = None,
) -> CreditLedgerEntry:
    """
    Append a positive entry. The caller commits.

    Raises:
        ValidationError: If amount is not positive
    """
    if amount <= 0:
        raise ValidationError("Credit amount must be positive")
    entry = await _append_entry(db, user_id, amount, reason, tier=tier, payment_id=payment_id)
    logger.info(f"Added {amount} credits to user {user_id} ({reason}); balance {entry.balance}")
    return entry


async def deduct_credits(
    db: AsyncSession,
    user_id: UUID,
    amount: int,
    reason: str,
    tier: Optional[JobTier] = None,
    job_id: Optional[UUID] = None,
) -> CreditLedgerEntry:
    """
    Append a negative entry. The caller commits.

    Raises:
        ValidationError: If amount is not positive
        InsufficientCreditsError: If the balance does not cover the amount
    """
    if amount <= 0:
        raise ValidationError("Credit amount must be positive")
    balance = await get_credit_balance(db, user_id)
    if balance < amount:
        raise InsufficientCreditsError(required=amount, balance=balance)
    entry = await _append_entry(db, user_id, -amount, reason, tier=tier, job_id=job_id)
    logger.info(f"Deducted {amount} credits from user {user_id} ({reason}); balance {entry.balance}")
    return entry


async def adjust_credits(db: AsyncSession, user_id: UUID, amount: int, reason: str) -> CreditLedgerEntry:
    """Admin correction in either direction; the balance never goes negative."""
    if amount > 0:
        return await add_credits(db, user_id, amount, reason)
    if amount < 0:
        return await deduct_credits(db, user_id, -amount, reason)
    raise ValidationError("Credit amount must not be zero")


async def get_credit_history(db: AsyncSession, user_id: UUID, limit: int = 100) -> Sequence[CreditLedgerEntry]:
    result = await db.execute(
        select(CreditLedgerEntry)
        .where(CreditLedgerEntry.user_id == user_id)
        .order_by(CreditLedgerEntry.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()
