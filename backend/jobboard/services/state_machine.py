"""
Status transitions for jobs and applications.
ALL status changes go through this module.
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional

from jobboard.database_types import utcnow
from jobboard.errors import ValidationError
from jobboard.models.application import Application, ApplicationStatus
from jobboard.models.job import Job, JobStatus

logger = logging.getLogger(__name__)


JOB_TRANSITIONS: Dict[JobStatus, List[JobStatus]] = {
    JobStatus.DRAFT: [JobStatus.PENDING, JobStatus.EXPIRED],
    JobStatus.PENDING: [JobStatus.ACTIVE, JobStatus.REJECTED, JobStatus.EXPIRED],
    JobStatus.ACTIVE: [JobStatus.EXPIRED],
    JobStatus.EXPIRED: [JobStatus.ACTIVE],  # Re-approved by an admin
    JobStatus.REJECTED: [JobStatus.PENDING, JobStatus.EXPIRED],  # Resubmitted after edits
}

APPLICATION_TRANSITIONS: Dict[ApplicationStatus, List[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: [
        ApplicationStatus.REVIEWING,
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFERED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.REVIEWING: [
        ApplicationStatus.SHORTLISTED,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFERED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.SHORTLISTED: [
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.OFFERED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.INTERVIEW: [
        ApplicationStatus.OFFERED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    ],
    ApplicationStatus.OFFERED: [ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN],
    ApplicationStatus.REJECTED: [],  # Terminal
    ApplicationStatus.WITHDRAWN: [],  # Terminal
}


class InvalidTransitionError(ValidationError):
    """Raised when an invalid status transition is attempted"""
    pass


def can_transition_job(from_status: JobStatus, to_status: JobStatus) -> bool:
    return to_status in JOB_TRANSITIONS.get(from_status, [])


def can_transition_application(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    return to_status in APPLICATION_TRANSITIONS.get(from_status, [])


def transition_job(
    job: Job,
    to_status: JobStatus,
    visibility_days: Optional[int] = None,
) -> Job:
    """
    Move a job to a new status. The caller commits.

    Activating stamps published_at and sets expires_at from the job's
    visibility window (or the one passed in).

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    from_status = JobStatus(job.status)
    if not can_transition_job(from_status, to_status):
        raise InvalidTransitionError(
            f"Invalid job transition from {from_status.value} to {to_status.value}"
        )

    job.status = to_status
    if to_status == JobStatus.ACTIVE:
        now = utcnow()
        if visibility_days is not None:
            job.visibility_days = visibility_days
        job.published_at = now
        job.expires_at = now + timedelta(days=job.visibility_days)

    logger.info(f"Job {job.id} status: {from_status.value} → {to_status.value}")
    return job


def transition_application(application: Application, to_status: ApplicationStatus) -> Application:
    """
    Move an application to a new status. The caller commits.

    Setting the current status again is a no-op.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    from_status = ApplicationStatus(application.status)
    if from_status == to_status:
        return application
    if not can_transition_application(from_status, to_status):
        raise InvalidTransitionError(
            f"Invalid application transition from {from_status.value} to {to_status.value}"
        )

    application.status = to_status
    application.updated_at = utcnow()
    logger.info(f"Application {application.id} status: {from_status.value} → {to_status.value}")
    return application
