"""
Seed the database with pricing plans and, optionally, demo data.

Usage:
    python -m jobboard.seed              # default plans (skipped if any exist)
    python -m jobboard.seed --demo       # plus demo users, companies and jobs
    python -m jobboard.seed --reset-plans
"""
import argparse
import asyncio
import logging

from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard import database
from jobboard.models.billing import Plan
from jobboard.models.job import ExperienceLevel, Job, JobStatus, JobTier, JobType
from jobboard.models.user import UserRole
from jobboard.services.companies import add_company_member, create_company
from jobboard.services.state_machine import transition_job
from jobboard.services.users import create_talent_profile, create_user, get_user_by_email

logger = logging.getLogger(__name__)

# (tier, visibility days, price in cents, credits)
DEFAULT_PLANS = [
    (JobTier.NORMAL, 7, 9900, 1),
    (JobTier.NORMAL, 14, 17900, 2),
    (JobTier.NORMAL, 30, 29900, 3),
    (JobTier.FEATURED, 7, 19900, 2),
    (JobTier.FEATURED, 14, 34900, 4),
    (JobTier.FEATURED, 30, 59900, 6),
    (JobTier.PREMIUM, 7, 39900, 4),
    (JobTier.PREMIUM, 14, 69900, 7),
    (JobTier.PREMIUM, 30, 99900, 10),
]

SINGLE_PLAN_NAME = "Job Posting - 30 Days"
SINGLE_PLAN_PRICE = 9900

DEMO_USERS = [
    ("admin@web3jobs.example", "admin", "AdminPass123", UserRole.ADMIN, "Admin", "User"),
    ("employer@defi.example", "employer", "Employer123", UserRole.EMPLOYER, "John", "Employer"),
    ("talent@crypto.example", "talent", "Talent123", UserRole.TALENT, "Jane", "Developer"),
]

DEMO_COMPANIES = [
    {
        "name": "DeFi Protocol",
        "description": "Decentralized finance protocol building open financial infrastructure.",
        "website": "https://defiprotocol.example",
        "location": "Remote",
        "size": "50-100",
        "payment_in_crypto": True,
        "remote_working": True,
    },
    {
        "name": "NFT Marketplace",
        "description": "Marketplace connecting creators and collectors.",
        "website": "https://nftmarketplace.example",
        "location": "San Francisco, CA",
        "size": "100-250",
    },
]

DEMO_JOBS = [
    {
        "title": "Senior Smart Contract Engineer",
        "description": "Design, implement and audit smart contracts on EVM chains.",
        "category": "Engineering",
        "location": "Remote",
        "is_remote": True,
        "tags": ["Solidity", "DeFi", "Ethereum", "Security"],
        "salary_min": 150000,
        "salary_max": 250000,
        "job_type": JobType.FULL_TIME,
        "experience_level": ExperienceLevel.SENIOR,
        "tier": JobTier.PREMIUM,
    },
    {
        "title": "Frontend Engineer (Web3)",
        "description": "Build wallet-connected interfaces for our trading products.",
        "category": "Engineering",
        "location": "Remote",
        "is_remote": True,
        "tags": ["React", "TypeScript", "ethers.js"],
        "salary_min": 110000,
        "salary_max": 160000,
        "job_type": JobType.FULL_TIME,
        "experience_level": ExperienceLevel.MID,
        "tier": JobTier.FEATURED,
    },
    {
        "title": "Community Manager",
        "description": "Grow and moderate our Discord and Telegram communities.",
        "category": "Marketing",
        "location": "San Francisco, CA",
        "tags": ["Community", "Discord"],
        "job_type": JobType.CONTRACT,
        "experience_level": ExperienceLevel.ENTRY,
        "tier": JobTier.NORMAL,
    },
]


async def seed_plans(db: AsyncSession) -> int:
    """Insert the default plans unless plans already exist. Returns plans created."""
    existing = (await db.execute(select(func.count(Plan.id)))).scalar_one()
    if existing:
        logger.info(f"{existing} plans already present, skipping")
        return 0
    for tier, days, price, credits in DEFAULT_PLANS:
        db.add(Plan(
            name=f"{tier.value.capitalize()} - {days} Days",
            tier=tier,
            visibility_days=days,
            price=price,
            credits=credits,
            is_active=True,
        ))
    await db.commit()
    logger.info(f"Created {len(DEFAULT_PLANS)} plans")
    return len(DEFAULT_PLANS)


async def reset_plans(db: AsyncSession) -> Plan:
    """Replace every plan with the single 30-day posting plan."""
    await db.execute(delete(Plan))
    plan = Plan(
        name=SINGLE_PLAN_NAME,
        tier=JobTier.NORMAL,
        visibility_days=30,
        price=SINGLE_PLAN_PRICE,
        credits=1,
        is_active=True,
    )
    db.add(plan)
    await db.commit()
    logger.info(f"Plans reset to '{SINGLE_PLAN_NAME}'")
    return plan


async def seed_demo(db: AsyncSession) -> None:
    """Demo accounts, approved companies and active jobs. Skipped if the admin exists."""
    if await get_user_by_email(db, DEMO_USERS[0][0]):
        logger.info("Demo data already present, skipping")
        return

    users = {}
    for email, username, password, role, first_name, last_name in DEMO_USERS:
        users[role] = await create_user(
            db, email, password, role=role, username=username,
            first_name=first_name, last_name=last_name,
        )
    await create_talent_profile(
        db, users[UserRole.TALENT],
        headline="Full-stack Web3 developer",
        skills=["Solidity", "TypeScript", "Python"],
        languages=["English"],
    )

    employer = users[UserRole.EMPLOYER]
    companies = []
    for data in DEMO_COMPANIES:
        company = await create_company(db, dict(data), approved=True, created_by_admin=True)
        await add_company_member(db, company.id, employer.id, is_owner=True)
        companies.append(company)

    for i, data in enumerate(DEMO_JOBS):
        job = Job(company_id=companies[i % len(companies)].id, status=JobStatus.PENDING, **data)
        db.add(job)
        transition_job(job, JobStatus.ACTIVE, visibility_days=30)

    await db.commit()
    logger.info(f"Created {len(DEMO_USERS)} users, {len(companies)} companies, {len(DEMO_JOBS)} jobs")


async def main(demo: bool = False, reset: bool = False) -> None:
    async with database.AsyncSessionLocal() as db:
        if reset:
            await reset_plans(db)
        else:
            await seed_plans(db)
        if demo:
            await seed_demo(db)
    await database.engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    parser = argparse.ArgumentParser(description="Seed the job board database")
    parser.add_argument("--demo", action="store_true", help="also create demo users, companies and jobs")
    parser.add_argument("--reset-plans", action="store_true", help="replace all plans with the single 30-day plan")
    args = parser.parse_args()
    asyncio.run(main(demo=args.demo, reset=args.reset_plans))
