"""
Tests for the seed script.
"""
import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.billing import Plan
from jobboard.models.job import Job, JobStatus
from jobboard.seed import DEFAULT_PLANS, SINGLE_PLAN_NAME, reset_plans, seed_demo, seed_plans


@pytest.mark.asyncio
async def test_seed_plans_once(db: AsyncSession):
    assert await seed_plans(db) == len(DEFAULT_PLANS)
    assert await seed_plans(db) == 0

    count = (await db.execute(select(func.count(Plan.id)))).scalar_one()
    assert count == len(DEFAULT_PLANS)


@pytest.mark.asyncio
async def test_reset_plans_leaves_single_plan(db: AsyncSession):
    await seed_plans(db)

    await reset_plans(db)

    plans = (await db.execute(select(Plan))).scalars().all()
    assert [(p.name, p.price, p.visibility_days) for p in plans] == [(SINGLE_PLAN_NAME, 9900, 30)]


@pytest.mark.asyncio
async def test_seed_demo_publishes_jobs(db: AsyncSession):
    await seed_demo(db)
    await seed_demo(db)

    jobs = (await db.execute(select(Job))).scalars().all()
    assert len(jobs) == 3
    assert all(job.status == JobStatus.ACTIVE and job.expires_at is not None for job in jobs)
