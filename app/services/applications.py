"""
Student applications to drives.

A student may opt in or out while the drive is open and before its deadline,
and only opts in to drives they are eligible for. Once an admin has marked
the application shortlisted, placed or rejected the student can no longer
change it.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.models.application import ApplicationStatus
from app.models.drive import DriveStatus
from app.services.drive_snapshot import DriveSnapshot
from app.services.eligibility import StudentEligibilityProfile, is_eligible
from app.services.errors import (
    ApplicationConflictError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ADMIN_STATUSES = frozenset({
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.PLACED,
    ApplicationStatus.REJECTED,
})


def accepting_applications(drive: DriveSnapshot, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    deadline = drive.deadline
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return drive.status == DriveStatus.OPEN and deadline > now


def _check_student_change(store, drive: DriveSnapshot, student_id: int, now: Optional[datetime]) -> None:
    if not accepting_applications(drive, now):
        raise ApplicationConflictError("Drive is not accepting applications")
    current = store.get(drive.id, student_id)
    if current is not None and ApplicationStatus(current.status) in ADMIN_STATUSES:
        raise ApplicationConflictError(f"Application already {ApplicationStatus(current.status).value}")


def apply(store, drive: DriveSnapshot, profile: StudentEligibilityProfile, now: Optional[datetime] = None):
    """Opt the student in. Applying twice is a no-op; applying after a withdrawal re-activates."""
    _check_student_change(store, drive, profile.student_id, now)
    if not is_eligible(profile, drive.criteria):
        raise NotEligibleError("You do not meet the eligibility criteria for this drive")

    application = store.set_status(drive.id, profile.student_id, ApplicationStatus.OPTED_IN)
    logger.info("Student %s opted in to drive %s", profile.student_id, drive.id)
    return application


def withdraw(store, drive: DriveSnapshot, student_id: int, now: Optional[datetime] = None):
    """Opt the student out. Recorded even without a prior application."""
    _check_student_change(store, drive, student_id, now)

    application = store.set_status(drive.id, student_id, ApplicationStatus.OPTED_OUT)
    logger.info("Student %s opted out of drive %s", student_id, drive.id)
    return application


def set_admin_status(store, drive_id: int, student_id: int, status):
    """Record the recruiter's decision on an existing application."""
    try:
        status = ApplicationStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid application status: {status}")
    if status not in ADMIN_STATUSES:
        allowed = ", ".join(sorted(s.value for s in ADMIN_STATUSES))
        raise ValidationError(f"Status must be one of: {allowed}")

    application = store.get(drive_id, student_id)
    if application is None:
        raise NotFoundError(f"No application from student {student_id} for drive {drive_id}")

    return store.update_status(application, status)
