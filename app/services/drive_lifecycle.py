"""
Drive status state machine.

States: draft → open → closed | cancelled | on_hold | completed
        on_hold → open

The only automatic transition is open → closed, done by the deadline sweep.
Everything else is an admin action. Closing a drive never notifies anyone.
"""
import logging
from typing import Dict, FrozenSet

from app.models.drive import DriveStatus
from app.services.errors import InvalidTransitionError

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[DriveStatus, FrozenSet[DriveStatus]] = {
    DriveStatus.DRAFT: frozenset({DriveStatus.OPEN}),
    DriveStatus.OPEN: frozenset({
        DriveStatus.CLOSED,
        DriveStatus.CANCELLED,
        DriveStatus.ON_HOLD,
        DriveStatus.COMPLETED,
    }),
    DriveStatus.ON_HOLD: frozenset({DriveStatus.OPEN}),
    DriveStatus.CLOSED: frozenset(),
    DriveStatus.COMPLETED: frozenset(),
    DriveStatus.CANCELLED: frozenset(),
}


def can_transition(from_status: DriveStatus, to_status: DriveStatus) -> bool:
    return DriveStatus(to_status) in TRANSITIONS.get(DriveStatus(from_status), frozenset())


def initial_status() -> DriveStatus:
    """
    Status a drive is saved with on the admin creation path.

    Drives start as draft and the admin path promotes them straight to open,
    so they're visible and notified on creation.
    """
    status = DriveStatus.DRAFT
    return _promote(status, DriveStatus.OPEN)


def _promote(from_status: DriveStatus, to_status: DriveStatus) -> DriveStatus:
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)
    return to_status


def transition(drive, to_status: DriveStatus) -> DriveStatus:
    """
    Apply a manual status change to a drive model (caller commits).
    Raises InvalidTransitionError if the move isn't allowed.
    """
    from_status = DriveStatus(drive.status)
    to_status = DriveStatus(to_status)
    drive.status = _promote(from_status, to_status)
    logger.info("Drive %s: %s → %s", drive.id, from_status.value, to_status.value)
    return to_status


def close_expired(drive_store) -> int:
    """Deadline sweep. Safe to run on any cadence; a no-op run writes nothing."""
    closed = drive_store.close_expired()
    if closed:
        logger.info("Deadline sweep closed %d expired drive(s)", closed)
    else:
        logger.debug("Deadline sweep: nothing to close")
    return closed
