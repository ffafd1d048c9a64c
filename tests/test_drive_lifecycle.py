"""Tests for the drive status state machine and the deadline sweep"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.models.drive import DriveStatus
from app.repositories.drives import SqlDriveStore
from app.services import drive_lifecycle
from app.services.errors import InvalidTransitionError


def _drive(drive_id=1, status=DriveStatus.OPEN, deadline=None):
    return SimpleNamespace(
        id=drive_id,
        status=status,
        deadline=deadline or datetime.now(timezone.utc) + timedelta(days=3),
    )


class TestTransitions:
    def test_initial_status_is_open(self):
        assert drive_lifecycle.initial_status() == DriveStatus.OPEN

    @pytest.mark.parametrize("from_status,to_status", [
        (DriveStatus.DRAFT, DriveStatus.OPEN),
        (DriveStatus.OPEN, DriveStatus.CLOSED),
        (DriveStatus.OPEN, DriveStatus.ON_HOLD),
        (DriveStatus.OPEN, DriveStatus.COMPLETED),
        (DriveStatus.OPEN, DriveStatus.CANCELLED),
        (DriveStatus.ON_HOLD, DriveStatus.OPEN),
    ])
    def test_allowed(self, from_status, to_status):
        drive = _drive(status=from_status)
        assert drive_lifecycle.transition(drive, to_status) == to_status
        assert drive.status == to_status

    @pytest.mark.parametrize("from_status,to_status", [
        (DriveStatus.CLOSED, DriveStatus.OPEN),
        (DriveStatus.CANCELLED, DriveStatus.OPEN),
        (DriveStatus.COMPLETED, DriveStatus.OPEN),
        (DriveStatus.DRAFT, DriveStatus.CLOSED),
        (DriveStatus.ON_HOLD, DriveStatus.CLOSED),
    ])
    def test_rejected(self, from_status, to_status):
        drive = _drive(status=from_status)
        with pytest.raises(InvalidTransitionError):
            drive_lifecycle.transition(drive, to_status)
        assert drive.status == from_status

    def test_accepts_string_values(self):
        assert drive_lifecycle.can_transition("open", "on_hold") is True
        assert drive_lifecycle.can_transition("closed", "open") is False


class TestCloseExpired:
    def test_closes_only_open_past_deadline(self, fake_drive_store, expired_deadline):
        expired = _drive(1, DriveStatus.OPEN, expired_deadline)
        upcoming = _drive(2, DriveStatus.OPEN)
        on_hold = _drive(3, DriveStatus.ON_HOLD, expired_deadline)
        store = fake_drive_store([expired, upcoming, on_hold])

        assert drive_lifecycle.close_expired(store) == 1

        assert expired.status == DriveStatus.CLOSED
        assert upcoming.status == DriveStatus.OPEN
        assert on_hold.status == DriveStatus.ON_HOLD

    def test_second_run_is_a_no_op(self, fake_drive_store, expired_deadline):
        """
        GIVEN a sweep that already closed an expired drive
        THEN running it again changes nothing and writes nothing
        """
        store = fake_drive_store([_drive(1, DriveStatus.OPEN, expired_deadline)])

        assert drive_lifecycle.close_expired(store) == 1
        writes_after_first = store.writes
        assert drive_lifecycle.close_expired(store) == 0
        assert store.writes == writes_after_first


class TestSqlDriveStoreCloseExpired:
    def test_returns_rowcount_and_commits(self):
        db = MagicMock()
        db.execute.return_value = MagicMock(rowcount=3)

        assert SqlDriveStore(db).close_expired() == 3
        db.execute.assert_called_once()
        db.commit.assert_called_once()

    def test_no_rows(self):
        db = MagicMock()
        db.execute.return_value = MagicMock(rowcount=0)
        assert SqlDriveStore(db).close_expired() == 0
