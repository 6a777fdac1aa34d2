"""
Tests for admin moderation, plans, credit grants and dashboard counters.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.company import Company
from jobboard.models.job import Job, JobStatus
from jobboard.models.user import User
from jobboard.services.credits import get_credit_balance


# ============================================================
# JOB MODERATION
# ============================================================

@pytest.mark.asyncio
async def test_pending_queue_and_approve(admin_client: AsyncClient, async_client: AsyncClient, make_job):
    job = await make_job("Needs review", status=JobStatus.PENDING, visibility_days=14)

    pending = await admin_client.get("/api/admin/jobs/pending")
    assert [j["id"] for j in pending.json()] == [str(job.id)]

    response = await admin_client.post(f"/api/admin/jobs/{job.id}/approve")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "active"
    assert data["published_at"] is not None
    assert data["expires_at"] is not None
    assert (await async_client.get(f"/api/jobs/{job.id}")).status_code == 200
    assert (await admin_client.get("/api/admin/jobs/pending")).json() == []


@pytest.mark.asyncio
async def test_reject_job(admin_client: AsyncClient, make_job):
    job = await make_job("Spam", status=JobStatus.PENDING)

    response = await admin_client.post(f"/api/admin/jobs/{job.id}/reject")

    assert response.json()["status"] == "rejected"


@pytest.mark.asyncio
async def test_cannot_reject_active_job(admin_client: AsyncClient, active_job: Job):
    response = await admin_client.post(f"/api/admin/jobs/{active_job.id}/reject")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_lists_jobs_in_any_status(admin_client: AsyncClient, make_job):
    await make_job("Live")
    await make_job("Queued", status=JobStatus.PENDING)

    everything = await admin_client.get("/api/admin/jobs")
    only_pending = await admin_client.get("/api/admin/jobs", params={"status": "pending"})

    assert len(everything.json()) == 2
    assert [j["title"] for j in only_pending.json()] == ["Queued"]


@pytest.mark.asyncio
async def test_admin_posts_live_job(admin_client: AsyncClient, company: Company):
    response = await admin_client.post("/api/admin/jobs", json={
        "company_id": str(company.id),
        "title": "Core Developer",
        "description": "Client implementation work",
        "tier": "premium",
        "visibility_days": 60,
    })

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "active"
    assert data["tier"] == "premium"
    assert data["visibility_days"] == 60


@pytest.mark.asyncio
async def test_non_admin_rejected(employer_client: AsyncClient, make_job):
    job = await make_job("Pending", status=JobStatus.PENDING)

    response = await employer_client.post(f"/api/admin/jobs/{job.id}/approve")

    assert response.status_code == 403


# ============================================================
# COMPANY MODERATION
# ============================================================

@pytest.mark.asyncio
async def test_company_moderation(admin_client: AsyncClient, async_client: AsyncClient, db: AsyncSession):
    waiting = Company(name="New DAO", slug="new-dao", is_approved=False)
    spam = Company(name="Spam Inc", slug="spam-inc", is_approved=False)
    db.add_all([waiting, spam])
    await db.commit()

    pending = await admin_client.get("/api/admin/companies/pending")
    assert {c["slug"] for c in pending.json()} == {"new-dao", "spam-inc"}

    approved = await admin_client.post(f"/api/admin/companies/{waiting.id}/approve")
    rejected = await admin_client.post(f"/api/admin/companies/{spam.id}/reject")

    assert approved.json()["is_approved"] is True
    assert rejected.json()["is_approved"] is False
    assert rejected.json()["rejected_at"] is not None
    assert (await admin_client.get("/api/admin/companies/pending")).json() == []
    assert [c["slug"] for c in (await async_client.get("/api/companies")).json()] == ["new-dao"]


@pytest.mark.asyncio
async def test_admin_creates_approved_company(admin_client: AsyncClient):
    response = await admin_client.post("/api/admin/companies", json={"name": "Foundation"})

    assert response.status_code == 201
    assert response.json()["is_approved"] is True
    assert response.json()["created_by_admin"] is True


@pytest.mark.asyncio
async def test_admin_lists_all_companies(admin_client: AsyncClient, db: AsyncSession, company: Company):
    db.add(Company(name="Hidden", slug="hidden", is_approved=False))
    await db.commit()

    response = await admin_client.get("/api/admin/companies")

    assert len(response.json()) == 2


# ============================================================
# TALENTS / PLANS / CREDITS
# ============================================================

@pytest.mark.asyncio
async def test_admin_edits_talent(admin_client: AsyncClient, talent_user: User, employer_user: User):
    response = await admin_client.put(f"/api/admin/talents/{talent_user.id}", json={"is_public": False})
    not_talent = await admin_client.put(f"/api/admin/talents/{employer_user.id}", json={"is_public": False})

    assert response.status_code == 200
    assert response.json()["is_public"] is False
    assert not_talent.status_code == 404

    listed = await admin_client.get("/api/admin/talents")
    assert [t["user_id"] for t in listed.json()] == [str(talent_user.id)]


@pytest.mark.asyncio
async def test_admin_manages_plans(admin_client: AsyncClient, async_client: AsyncClient):
    created = await admin_client.post("/api/admin/plans", json={
        "name": "Premium - 7 Days", "tier": "premium", "visibility_days": 7, "price": 39900, "credits": 4,
    })
    assert created.status_code == 201
    plan_id = created.json()["id"]

    updated = await admin_client.put(f"/api/admin/plans/{plan_id}", json={"is_active": False})

    assert updated.json()["is_active"] is False
    assert (await async_client.get("/api/plans")).json() == []


@pytest.mark.asyncio
async def test_admin_grants_and_removes_credits(
    admin_client: AsyncClient, db: AsyncSession, employer_user: User
):
    granted = await admin_client.post(
        "/api/admin/credits", json={"user_id": str(employer_user.id), "amount": 5, "reason": "Launch promo"}
    )
    removed = await admin_client.post(
        "/api/admin/credits", json={"user_id": str(employer_user.id), "amount": -2, "reason": "Correction"}
    )
    overdrawn = await admin_client.post(
        "/api/admin/credits", json={"user_id": str(employer_user.id), "amount": -10, "reason": "Too much"}
    )

    assert granted.status_code == 201
    assert granted.json()["reason"] == "Launch promo (by admin@example.com)"
    assert removed.json()["balance"] == 3
    assert overdrawn.status_code == 400
    assert await get_credit_balance(db, employer_user.id) == 3


@pytest.mark.asyncio
async def test_grant_credits_unknown_user(admin_client: AsyncClient):
    response = await admin_client.post(
        "/api/admin/credits",
        json={"user_id": "00000000-0000-0000-0000-000000000000", "amount": 1, "reason": "x"},
    )

    assert response.status_code == 404


# ============================================================
# STATS
# ============================================================

@pytest.mark.asyncio
async def test_admin_stats(admin_client: AsyncClient, db: AsyncSession, make_job):
    await make_job("Live")
    await make_job("Queued", status=JobStatus.PENDING)
    db.add(Company(name="Waiting", slug="waiting", is_approved=False))
    await db.commit()

    response = await admin_client.get("/api/admin/stats")

    assert response.json() == {
        "total_jobs": 2,
        "total_companies": 2,
        "total_users": 2,
        "pending_jobs": 1,
        "pending_companies": 1,
    }


@pytest.mark.asyncio
async def test_dashboard_stats_per_role(
    talent_client: AsyncClient, employer_client: AsyncClient, db: AsyncSession,
    active_job: Job, talent_user: User
):
    db.add(Application(job_id=active_job.id, user_id=talent_user.id, status=ApplicationStatus.INTERVIEW))
    active_job.view_count = 7
    await db.commit()

    talent = (await talent_client.get("/api/dashboard/stats")).json()
    employer = (await employer_client.get("/api/dashboard/stats")).json()

    assert talent == {"applications_count": 1, "saved_jobs_count": 0, "interviews_count": 1}
    assert employer == {
        "active_jobs_count": 1,
        "total_views": 7,
        "total_applications": 1,
        "credits_balance": 0,
    }
