"""
Pytest fixtures for testing.
"""
import os

# Fast password hashing; must be set before jobboard.config loads
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EMAIL_MODE", "dev")

from contextlib import AsyncExitStack
from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import jobboard.database
from jobboard.database import Base
from jobboard.database_types import utcnow
# Import ALL models so Base.metadata knows about all tables
from jobboard.models import (
    Company,
    CompanyMember,
    Job,
    JobStatus,
    JobTier,
    TalentProfile,
    User,
    UserRole,
)
from jobboard.services import object_storage
from jobboard.services.object_storage import LocalObjectStore
from jobboard.services.passwords import hash_password

# Now import app (after we can override database)
from jobboard.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "Password123"


@pytest.fixture(autouse=True)
def object_store(tmp_path):
    """Every test gets its own local object store."""
    original = object_storage._store
    store = LocalObjectStore(tmp_path / "objects")
    object_storage._store = store
    yield store
    object_storage._store = original


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # Use StaticPool to keep single connection alive and reuse it
    # This ensures all sessions see the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Replace the app's engine and sessionmaker so get_db() uses the test database
    original_engine = jobboard.database.engine
    original_sessionmaker = jobboard.database.AsyncSessionLocal

    jobboard.database.engine = test_engine
    jobboard.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = jobboard.database.AsyncSessionLocal()

    try:
        yield session
    finally:
        await session.close()
        await test_engine.dispose()
        jobboard.database.engine = original_engine
        jobboard.database.AsyncSessionLocal = original_sessionmaker


@pytest_asyncio.fixture
async def client_factory(db: AsyncSession):
    """
    Build HTTP clients against the app. Each client keeps its own session
    cookie, so several signed-in users can act in one test.
    """
    async with AsyncExitStack() as stack:
        async def make_client() -> AsyncClient:
            transport = ASGITransport(app=fastapi_app)
            return await stack.enter_async_context(
                AsyncClient(transport=transport, base_url="http://test")
            )

        yield make_client


@pytest_asyncio.fixture
async def async_client(client_factory) -> AsyncClient:
    """Anonymous client."""
    return await client_factory()


@pytest_asyncio.fixture
async def make_user(db: AsyncSession):
    async def _make_user(
        email: str,
        role: UserRole = UserRole.GUEST,
        password: str = DEFAULT_PASSWORD,
        **fields,
    ) -> User:
        user = User(email=email, role=role, password_hash=hash_password(password), **fields)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def login_as(client_factory):
    """Return a new client signed in as the given user."""
    async def _login_as(user: User, password: str = DEFAULT_PASSWORD) -> AsyncClient:
        client = await client_factory()
        response = await client.post(
            "/api/auth/login", json={"identifier": user.email, "password": password}
        )
        assert response.status_code == 200, response.text
        return client

    return _login_as


# ============================================================
# USERS
# ============================================================

@pytest_asyncio.fixture
async def talent_user(db: AsyncSession, make_user) -> User:
    user = await make_user("talent@example.com", UserRole.TALENT, first_name="Jane", last_name="Dev")
    db.add(TalentProfile(user_id=user.id, headline="Solidity developer", skills=["Solidity", "Rust"]))
    await db.commit()
    return user


@pytest_asyncio.fixture
async def employer_user(make_user) -> User:
    return await make_user("employer@example.com", UserRole.EMPLOYER, first_name="John")


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def talent_client(login_as, talent_user) -> AsyncClient:
    return await login_as(talent_user)


@pytest_asyncio.fixture
async def employer_client(login_as, employer_user) -> AsyncClient:
    return await login_as(employer_user)


@pytest_asyncio.fixture
async def admin_client(login_as, admin_user) -> AsyncClient:
    return await login_as(admin_user)


# ============================================================
# COMPANIES & JOBS
# ============================================================

@pytest_asyncio.fixture
async def company(db: AsyncSession, employer_user: User) -> Company:
    """Approved company owned by employer_user."""
    company = Company(name="DeFi Labs", slug="defi-labs", is_approved=True, location="Remote")
    db.add(company)
    await db.flush()
    db.add(CompanyMember(company_id=company.id, user_id=employer_user.id, is_owner=True))
    await db.commit()
    await db.refresh(company)
    return company


@pytest_asyncio.fixture
async def make_job(db: AsyncSession, company: Company):
    async def _make_job(
        title: str = "Smart Contract Engineer",
        status: JobStatus = JobStatus.ACTIVE,
        tier: JobTier = JobTier.NORMAL,
        company_id=None,
        published_ago: timedelta = timedelta(0),
        **fields,
    ) -> Job:
        values = {
            "company_id": company_id or company.id,
            "title": title,
            "description": f"{title} wanted",
            "status": status,
            "tier": tier,
            "visibility_days": 30,
        }
        if status == JobStatus.ACTIVE:
            values["published_at"] = utcnow() - published_ago
            values["expires_at"] = values["published_at"] + timedelta(days=30)
        values.update(fields)
        job = Job(**values)
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job

    return _make_job


@pytest_asyncio.fixture
async def active_job(make_job) -> Job:
    return await make_job()
