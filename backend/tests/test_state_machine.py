"""
Tests for the state machine service.

Validates:
- Job moderation and expiry transitions
- Approval stamps published_at / expires_at
- Application pipeline transitions, terminal states
- Invalid transitions raise InvalidTransitionError (a 400 ValidationError)
"""
from datetime import timedelta

import pytest

from jobboard.errors import ValidationError
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job, JobStatus
from jobboard.services.state_machine import (
    InvalidTransitionError,
    can_transition_application,
    can_transition_job,
    transition_application,
    transition_job,
)


def make_job(status: JobStatus, visibility_days: int = 30) -> Job:
    return Job(title="Engineer", description="x", status=status, visibility_days=visibility_days)


def make_application(status: ApplicationStatus) -> Application:
    return Application(status=status)


# ============================================================
# JOBS
# ============================================================

@pytest.mark.parametrize("from_status,to_status", [
    (JobStatus.DRAFT, JobStatus.PENDING),
    (JobStatus.PENDING, JobStatus.ACTIVE),
    (JobStatus.PENDING, JobStatus.REJECTED),
    (JobStatus.ACTIVE, JobStatus.EXPIRED),
    (JobStatus.REJECTED, JobStatus.PENDING),
    (JobStatus.EXPIRED, JobStatus.ACTIVE),
])
def test_valid_job_transitions(from_status, to_status):
    assert can_transition_job(from_status, to_status)
    job = transition_job(make_job(from_status), to_status)
    assert job.status == to_status


@pytest.mark.parametrize("from_status,to_status", [
    (JobStatus.DRAFT, JobStatus.ACTIVE),
    (JobStatus.ACTIVE, JobStatus.PENDING),
    (JobStatus.ACTIVE, JobStatus.REJECTED),
    (JobStatus.REJECTED, JobStatus.ACTIVE),
    (JobStatus.EXPIRED, JobStatus.PENDING),
])
def test_invalid_job_transitions(from_status, to_status):
    job = make_job(from_status)
    with pytest.raises(InvalidTransitionError):
        transition_job(job, to_status)
    assert job.status == from_status


def test_approval_sets_publication_window():
    job = transition_job(make_job(JobStatus.PENDING, visibility_days=14), JobStatus.ACTIVE)

    assert job.published_at is not None
    assert job.expires_at - job.published_at == timedelta(days=14)


def test_approval_with_explicit_visibility_overrides_job_window():
    job = transition_job(make_job(JobStatus.PENDING, visibility_days=7), JobStatus.ACTIVE, visibility_days=60)

    assert job.visibility_days == 60
    assert job.expires_at - job.published_at == timedelta(days=60)


def test_unpublished_job_can_be_closed():
    """Closing a pending job expires it without publishing it."""
    job = transition_job(make_job(JobStatus.PENDING), JobStatus.EXPIRED)
    assert job.status == JobStatus.EXPIRED
    assert job.published_at is None


# ============================================================
# APPLICATIONS
# ============================================================

@pytest.mark.parametrize("to_status", [
    ApplicationStatus.REVIEWING,
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFERED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
])
def test_submitted_can_move_anywhere_forward(to_status):
    application = transition_application(make_application(ApplicationStatus.SUBMITTED), to_status)
    assert application.status == to_status


def test_pipeline_cannot_move_backwards():
    assert not can_transition_application(ApplicationStatus.INTERVIEW, ApplicationStatus.REVIEWING)
    with pytest.raises(InvalidTransitionError):
        transition_application(make_application(ApplicationStatus.OFFERED), ApplicationStatus.INTERVIEW)


@pytest.mark.parametrize("terminal", [ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN])
def test_terminal_statuses(terminal):
    """REJECTED and WITHDRAWN never change again."""
    for to_status in ApplicationStatus:
        if to_status == terminal:
            continue
        assert not can_transition_application(terminal, to_status)
        with pytest.raises(InvalidTransitionError):
            transition_application(make_application(terminal), to_status)


def test_same_status_is_noop():
    application = make_application(ApplicationStatus.INTERVIEW)
    assert transition_application(application, ApplicationStatus.INTERVIEW) is application
    assert application.status == ApplicationStatus.INTERVIEW


def test_invalid_transition_maps_to_400():
    error = InvalidTransitionError("nope")
    assert isinstance(error, ValidationError)
    assert error.status_code == 400
