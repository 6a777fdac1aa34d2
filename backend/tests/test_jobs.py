"""
Tests for Jobs API endpoints.
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database_types import utcnow
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import Company
from jobboard.models.job import Job, JobStatus, JobTier
from jobboard.models.message import Message
from jobboard.models.user import User, UserRole
from jobboard.services.credits import add_credits
from jobboard.services.messaging import JOB_CLOSED_MESSAGE


def job_payload(company: Company, **overrides) -> dict:
    payload = {
        "company_id": str(company.id),
        "title": "Solidity Engineer",
        "description": "Write and audit contracts",
        "category": "Engineering",
        "is_remote": True,
        "tags": ["Solidity", "EVM"],
        "salary_min": 100000,
        "salary_max": 150000,
        "application_email": "hiring@defilabs.example",
    }
    payload.update(overrides)
    return payload


# ============================================================
# PUBLIC LISTING
# ============================================================

@pytest.mark.asyncio
async def test_list_orders_by_tier_then_recency(async_client: AsyncClient, make_job):
    """
    Test: Listing order

    Premium jobs come before featured, featured before normal, and the
    most recently published job comes first inside a tier.
    """
    old_normal = await make_job("Old normal", published_ago=timedelta(days=3))
    new_normal = await make_job("New normal")
    featured = await make_job("Featured", tier=JobTier.FEATURED, published_ago=timedelta(days=5))
    premium = await make_job("Premium", tier=JobTier.PREMIUM, published_ago=timedelta(days=10))

    response = await async_client.get("/api/jobs")

    assert response.status_code == 200
    ids = [job["id"] for job in response.json()]
    assert ids == [str(premium.id), str(featured.id), str(new_normal.id), str(old_normal.id)]


@pytest.mark.asyncio
async def test_list_only_shows_active_jobs(async_client: AsyncClient, make_job):
    active = await make_job("Active")
    await make_job("Pending", status=JobStatus.PENDING)
    await make_job("Rejected", status=JobStatus.REJECTED)

    response = await async_client.get("/api/jobs")

    assert [job["id"] for job in response.json()] == [str(active.id)]
    assert response.json()[0]["company"]["slug"] == "defi-labs"


@pytest.mark.asyncio
async def test_list_filters(async_client: AsyncClient, make_job):
    await make_job("Rust Developer", category="Engineering", is_remote=True)
    await make_job("Community Lead", category="Marketing", is_remote=False)

    by_search = await async_client.get("/api/jobs", params={"search": "rust"})
    by_category = await async_client.get("/api/jobs", params={"category": "Marketing"})
    by_remote = await async_client.get("/api/jobs", params={"remote": "true"})
    all_category = await async_client.get("/api/jobs", params={"category": "all"})

    assert [j["title"] for j in by_search.json()] == ["Rust Developer"]
    assert [j["title"] for j in by_category.json()] == ["Community Lead"]
    assert [j["title"] for j in by_remote.json()] == ["Rust Developer"]
    assert len(all_category.json()) == 2


@pytest.mark.asyncio
async def test_count_jobs(async_client: AsyncClient, make_job):
    await make_job("One")
    await make_job("Two")
    await make_job("Pending", status=JobStatus.PENDING)

    response = await async_client.get("/api/jobs/count")

    assert response.json() == {"count": 2}


@pytest.mark.asyncio
async def test_overdue_jobs_expire_on_listing(async_client: AsyncClient, db: AsyncSession, make_job):
    overdue = await make_job("Overdue", expires_at=utcnow() - timedelta(minutes=1))
    fresh = await make_job("Fresh")

    response = await async_client.get("/api/jobs")

    assert [job["id"] for job in response.json()] == [str(fresh.id)]
    await db.refresh(overdue)
    assert overdue.status == JobStatus.EXPIRED


@pytest.mark.asyncio
async def test_expiry_auto_rejects_interviews(
    async_client: AsyncClient, db: AsyncSession, make_job, talent_user: User
):
    """
    Test: Lazy expiry closes conversations

    An application in interview on an overdue job is rejected and the
    canned closing message is posted without a sender.
    """
    job = await make_job("Overdue", expires_at=utcnow() - timedelta(hours=1))
    application = Application(job_id=job.id, user_id=talent_user.id, status=ApplicationStatus.INTERVIEW)
    reviewing = Application(job_id=job.id, user_id=(await _other_talent(db)).id, status=ApplicationStatus.REVIEWING)
    db.add_all([application, reviewing])
    await db.commit()

    await async_client.get("/api/jobs/count")

    await db.refresh(application)
    await db.refresh(reviewing)
    assert application.status == ApplicationStatus.REJECTED
    assert reviewing.status == ApplicationStatus.REVIEWING

    messages = (await db.execute(select(Message).where(Message.application_id == application.id))).scalars().all()
    assert len(messages) == 1
    assert messages[0].sender_id is None
    assert messages[0].message == JOB_CLOSED_MESSAGE


async def _other_talent(db: AsyncSession) -> User:
    user = User(email="other@example.com", role=UserRole.TALENT)
    db.add(user)
    await db.commit()
    return user


# ============================================================
# DETAIL
# ============================================================

@pytest.mark.asyncio
async def test_get_active_job_is_public(async_client: AsyncClient, active_job: Job):
    response = await async_client.get(f"/api/jobs/{active_job.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == active_job.title
    assert data["company"]["name"] == "DeFi Labs"


@pytest.mark.asyncio
async def test_pending_job_hidden_from_public(
    async_client: AsyncClient, employer_client: AsyncClient, make_job
):
    job = await make_job("Pending", status=JobStatus.PENDING)

    public = await async_client.get(f"/api/jobs/{job.id}")
    member = await employer_client.get(f"/api/jobs/{job.id}")

    assert public.status_code == 404
    assert member.status_code == 200
    assert member.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_get_unknown_job(async_client: AsyncClient):
    response = await async_client.get("/api/jobs/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_record_view(async_client: AsyncClient, db: AsyncSession, active_job: Job):
    for _ in range(3):
        response = await async_client.post(f"/api/jobs/{active_job.id}/view")
        assert response.status_code == 204

    await db.refresh(active_job)
    assert active_job.view_count == 3


# ============================================================
# EMPLOYER CRUD
# ============================================================

@pytest.mark.asyncio
async def test_create_job_is_pending(employer_client: AsyncClient, company: Company):
    response = await employer_client.post("/api/jobs", json=job_payload(company))

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "pending"
    assert data["tier"] == "normal"
    assert data["published_at"] is None
    assert data["tags"] == ["Solidity", "EVM"]


@pytest.mark.asyncio
async def test_create_job_requires_membership(login_as, make_user, company: Company):
    outsider = await make_user("outsider@example.com", UserRole.EMPLOYER)
    client = await login_as(outsider)

    response = await client.post("/api/jobs", json=job_payload(company))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_job_salary_range_validated(employer_client: AsyncClient, company: Company):
    response = await employer_client.post(
        "/api/jobs", json=job_payload(company, salary_min=200000, salary_max=100000)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_talent_cannot_create_job(talent_client: AsyncClient, company: Company):
    response = await talent_client.post("/api/jobs", json=job_payload(company))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_job_ignores_protected_fields(employer_client: AsyncClient, active_job: Job):
    response = await employer_client.put(
        f"/api/jobs/{active_job.id}",
        json={"title": "Lead Solidity Engineer", "tier": "premium", "status": "pending"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Lead Solidity Engineer"
    assert data["tier"] == "normal"
    assert data["status"] == "active"


@pytest.mark.asyncio
async def test_editing_rejected_job_resubmits_it(employer_client: AsyncClient, make_job):
    job = await make_job("Rejected", status=JobStatus.REJECTED)

    response = await employer_client.put(f"/api/jobs/{job.id}", json={"description": "Now with salary info"})

    assert response.status_code == 200
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_delete_closes_job(
    employer_client: AsyncClient, db: AsyncSession, active_job: Job, talent_user: User
):
    application = Application(job_id=active_job.id, user_id=talent_user.id, status=ApplicationStatus.INTERVIEW)
    db.add(application)
    await db.commit()

    response = await employer_client.delete(f"/api/jobs/{active_job.id}")

    assert response.status_code == 200
    assert response.json()["status"] == "expired"
    await db.refresh(application)
    assert application.status == ApplicationStatus.REJECTED
    assert (await db.get(Job, active_job.id)) is not None


# ============================================================
# UPGRADES
# ============================================================

@pytest.mark.asyncio
async def test_upgrade_spends_credits(
    employer_client: AsyncClient, db: AsyncSession, employer_user: User, active_job: Job
):
    await add_credits(db, employer_user.id, 3, reason="test")
    await db.commit()

    response = await employer_client.post(f"/api/jobs/{active_job.id}/upgrade", json={"tier": "premium"})

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["job"]["tier"] == "premium"
    assert data["credits_spent"] == 2
    assert data["credits_balance"] == 1


@pytest.mark.asyncio
async def test_upgrade_without_credits(employer_client: AsyncClient, active_job: Job):
    response = await employer_client.post(f"/api/jobs/{active_job.id}/upgrade", json={"tier": "featured"})

    assert response.status_code == 400
    assert "Insufficient credits" in response.json()["detail"]


@pytest.mark.asyncio
async def test_upgrade_must_raise_tier(
    employer_client: AsyncClient, db: AsyncSession, employer_user: User, make_job
):
    await add_credits(db, employer_user.id, 5, reason="test")
    await db.commit()
    job = await make_job("Premium", tier=JobTier.PREMIUM)

    response = await employer_client.post(f"/api/jobs/{job.id}/upgrade", json={"tier": "featured"})

    assert response.status_code == 400
    assert (await employer_client.get("/api/credits")).json() == {"balance": 5}
