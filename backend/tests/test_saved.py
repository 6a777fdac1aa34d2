"""
Tests for saved jobs and saved searches.
"""
import pytest
from httpx import AsyncClient

from jobboard.models.job import Job, JobStatus


# ============================================================
# SAVED JOBS
# ============================================================

@pytest.mark.asyncio
async def test_save_and_list_job(talent_client: AsyncClient, active_job: Job):
    response = await talent_client.post("/api/saved-jobs", json={"job_id": str(active_job.id)})

    assert response.status_code == 201
    saved = (await talent_client.get("/api/saved-jobs")).json()
    assert [s["job_id"] for s in saved] == [str(active_job.id)]


@pytest.mark.asyncio
async def test_save_job_twice_conflicts(talent_client: AsyncClient, active_job: Job):
    await talent_client.post("/api/saved-jobs", json={"job_id": str(active_job.id)})

    response = await talent_client.post("/api/saved-jobs", json={"job_id": str(active_job.id)})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cannot_save_inactive_job(talent_client: AsyncClient, make_job):
    job = await make_job("Pending", status=JobStatus.PENDING)

    response = await talent_client.post("/api/saved-jobs", json={"job_id": str(job.id)})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unsave_job(talent_client: AsyncClient, active_job: Job):
    await talent_client.post("/api/saved-jobs", json={"job_id": str(active_job.id)})

    response = await talent_client.delete(f"/api/saved-jobs/{active_job.id}")
    missing = await talent_client.delete(f"/api/saved-jobs/{active_job.id}")

    assert response.status_code == 204
    assert missing.status_code == 404
    assert (await talent_client.get("/api/saved-jobs")).json() == []


@pytest.mark.asyncio
async def test_saved_jobs_are_per_user(
    talent_client: AsyncClient, employer_client: AsyncClient, active_job: Job
):
    await talent_client.post("/api/saved-jobs", json={"job_id": str(active_job.id)})

    assert (await employer_client.get("/api/saved-jobs")).json() == []


@pytest.mark.asyncio
async def test_saved_jobs_require_login(async_client: AsyncClient):
    assert (await async_client.get("/api/saved-jobs")).status_code == 401


# ============================================================
# SAVED SEARCHES
# ============================================================

@pytest.mark.asyncio
async def test_create_and_list_saved_search(talent_client: AsyncClient):
    response = await talent_client.post(
        "/api/saved-searches",
        json={"name": "Remote Rust", "filters": {"search": "rust", "remote": True}, "alert_frequency": "weekly"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["filters"] == {"search": "rust", "remote": True}
    assert data["alert_frequency"] == "weekly"
    assert data["last_alert_sent"] is None

    listed = (await talent_client.get("/api/saved-searches")).json()
    assert [s["name"] for s in listed] == ["Remote Rust"]


@pytest.mark.asyncio
async def test_saved_search_invalid_frequency(talent_client: AsyncClient):
    response = await talent_client.post(
        "/api/saved-searches", json={"name": "Hourly", "alert_frequency": "hourly"}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_only_own_saved_search(talent_client: AsyncClient, employer_client: AsyncClient):
    search_id = (await talent_client.post("/api/saved-searches", json={"name": "Mine"})).json()["id"]

    stolen = await employer_client.delete(f"/api/saved-searches/{search_id}")
    own = await talent_client.delete(f"/api/saved-searches/{search_id}")

    assert stolen.status_code == 404
    assert own.status_code == 204
    assert (await talent_client.get("/api/saved-searches")).json() == []
