"""
Tests for applying to jobs and the hiring pipeline.

Covers:
1. Applying: talent only, once per job, active jobs only
2. Applicant view (own list, detail without employer notes, withdraw)
3. Employer view (list with closed filter, pipeline updates)
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job, JobStatus
from jobboard.models.user import User, UserRole


async def apply(client: AsyncClient, job: Job, **body) -> dict:
    response = await client.post(f"/api/jobs/{job.id}/apply", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# APPLYING
# ============================================================

@pytest.mark.asyncio
async def test_apply_to_active_job(talent_client: AsyncClient, db: AsyncSession, active_job: Job):
    data = await apply(talent_client, active_job, cover_letter="I write audited contracts.")

    assert data["status"] == "submitted"
    assert data["cover_letter"] == "I write audited contracts."
    await db.refresh(active_job)
    assert active_job.apply_count == 1


@pytest.mark.asyncio
async def test_apply_without_body(talent_client: AsyncClient, active_job: Job):
    response = await talent_client.post(f"/api/jobs/{active_job.id}/apply")

    assert response.status_code == 201
    assert response.json()["cover_letter"] is None


@pytest.mark.asyncio
async def test_apply_uses_uploaded_resume(
    talent_client: AsyncClient, db: AsyncSession, talent_user: User, active_job: Job
):
    talent_user.resume_path = "/objects/resumes/cv.pdf"
    await db.commit()

    data = await apply(talent_client, active_job)

    assert data["resume_url"] == "/objects/resumes/cv.pdf"


@pytest.mark.asyncio
async def test_apply_twice_conflicts(talent_client: AsyncClient, db: AsyncSession, active_job: Job):
    await apply(talent_client, active_job)

    response = await talent_client.post(f"/api/jobs/{active_job.id}/apply", json={})

    assert response.status_code == 409
    await db.refresh(active_job)
    assert active_job.apply_count == 1


@pytest.mark.asyncio
async def test_apply_to_inactive_job(talent_client: AsyncClient, make_job):
    job = await make_job("Pending", status=JobStatus.PENDING)

    response = await talent_client.post(f"/api/jobs/{job.id}/apply", json={})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_talent_can_apply(employer_client: AsyncClient, active_job: Job):
    response = await employer_client.post(f"/api/jobs/{active_job.id}/apply", json={})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_apply_requires_login(async_client: AsyncClient, active_job: Job):
    response = await async_client.post(f"/api/jobs/{active_job.id}/apply", json={})

    assert response.status_code == 401


# ============================================================
# APPLICANT SIDE
# ============================================================

@pytest.mark.asyncio
async def test_list_my_applications_includes_job(talent_client: AsyncClient, active_job: Job):
    await apply(talent_client, active_job)

    response = await talent_client.get("/api/applications")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["job"]["id"] == str(active_job.id)
    assert data[0]["job"]["company"]["name"] == "DeFi Labs"


@pytest.mark.asyncio
async def test_applicant_never_sees_employer_notes(
    talent_client: AsyncClient, employer_client: AsyncClient, active_job: Job
):
    """
    Test: Per-side application detail

    The employer stores a score and notes; the applicant's view of the
    same application leaves both out, the employer's view includes the
    applicant and the job title.
    """
    application = await apply(talent_client, active_job)
    await employer_client.put(
        f"/api/applications/{application['id']}",
        json={"score": 80, "notes": "Strong Solidity background"},
    )

    talent_view = (await talent_client.get(f"/api/applications/{application['id']}")).json()
    employer_view = (await employer_client.get(f"/api/applications/{application['id']}")).json()

    assert "notes" not in talent_view
    assert "score" not in talent_view
    assert talent_view["job"]["title"] == active_job.title

    assert employer_view["notes"] == "Strong Solidity background"
    assert employer_view["score"] == 80
    assert employer_view["applicant"]["email"] == "talent@example.com"
    assert employer_view["job_title"] == active_job.title


@pytest.mark.asyncio
async def test_outsider_cannot_read_application(
    talent_client: AsyncClient, login_as, make_user, active_job: Job
):
    application = await apply(talent_client, active_job)
    stranger = await login_as(await make_user("stranger@example.com", UserRole.TALENT))

    response = await stranger.get(f"/api/applications/{application['id']}")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_withdraw(talent_client: AsyncClient, active_job: Job):
    application = await apply(talent_client, active_job)

    response = await talent_client.post(f"/api/applications/{application['id']}/withdraw")

    assert response.status_code == 200
    assert response.json()["status"] == "withdrawn"


@pytest.mark.asyncio
async def test_cannot_withdraw_rejected_application(
    talent_client: AsyncClient, employer_client: AsyncClient, active_job: Job
):
    application = await apply(talent_client, active_job)
    await employer_client.put(f"/api/applications/{application['id']}", json={"status": "rejected"})

    response = await talent_client.post(f"/api/applications/{application['id']}/withdraw")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_employer_cannot_withdraw(
    talent_client: AsyncClient, employer_client: AsyncClient, active_job: Job
):
    application = await apply(talent_client, active_job)

    response = await employer_client.post(f"/api/applications/{application['id']}/withdraw")

    assert response.status_code == 403


# ============================================================
# EMPLOYER SIDE
# ============================================================

@pytest.mark.asyncio
async def test_pipeline_moves_forward(
    talent_client: AsyncClient, employer_client: AsyncClient, active_job: Job
):
    application = await apply(talent_client, active_job)
    url = f"/api/applications/{application['id']}"

    for status in ("reviewing", "shortlisted", "interview"):
        response = await employer_client.put(url, json={"status": status})
        assert response.status_code == 200, response.text
        assert response.json()["status"] == status

    backwards = await employer_client.put(url, json={"status": "reviewing"})
    assert backwards.status_code == 400


@pytest.mark.asyncio
async def test_talent_cannot_update_pipeline(talent_client: AsyncClient, active_job: Job):
    application = await apply(talent_client, active_job)

    response = await talent_client.put(f"/api/applications/{application['id']}", json={"status": "offered"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_other_company_cannot_update(
    talent_client: AsyncClient, login_as, make_user, active_job: Job
):
    application = await apply(talent_client, active_job)
    rival = await login_as(await make_user("rival@example.com", UserRole.EMPLOYER))

    response = await rival.put(f"/api/applications/{application['id']}", json={"status": "rejected"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_employer_list_hides_closed_applications(
    employer_client: AsyncClient, db: AsyncSession, active_job: Job, talent_user: User, make_user
):
    other = await make_user("other@example.com", UserRole.TALENT)
    db.add_all([
        Application(job_id=active_job.id, user_id=talent_user.id, status=ApplicationStatus.REVIEWING),
        Application(job_id=active_job.id, user_id=other.id, status=ApplicationStatus.REJECTED),
    ])
    await db.commit()

    default = await employer_client.get("/api/employer/applications")
    everything = await employer_client.get("/api/employer/applications", params={"include_closed": "true"})
    rejected = await employer_client.get("/api/employer/applications", params={"status": "rejected"})

    assert [a["status"] for a in default.json()] == ["reviewing"]
    assert len(everything.json()) == 2
    assert [a["applicant"]["email"] for a in rejected.json()] == ["other@example.com"]


@pytest.mark.asyncio
async def test_employer_jobs_include_application_counts(
    employer_client: AsyncClient, talent_client: AsyncClient, make_job
):
    busy = await make_job("Busy")
    await make_job("Quiet")
    await apply(talent_client, busy)

    response = await employer_client.get("/api/employer/jobs")

    assert response.status_code == 200
    counts = {job["title"]: job["applications_count"] for job in response.json()}
    assert counts == {"Busy": 1, "Quiet": 0}
