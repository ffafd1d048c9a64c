"""Tests for Celery tasks and the post-commit enqueue helper"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from app.models.drive import DriveStatus
from app.services.drive_snapshot import DriveSnapshot
from app.services.fanout import EventKind, FanoutSummary


class TestFanoutDriveTask:
    def test_runs_coordinator_with_rebuilt_snapshot(self, snapshot_factory):
        snapshot = snapshot_factory(drive_id=42, departments=["CSE"], batches=[2026])
        mock_db = MagicMock()
        coordinator = MagicMock()
        coordinator.run.return_value = FanoutSummary(drive_id=42, event=EventKind.CREATED, eligible=5)

        with patch("app.tasks.SessionLocal", return_value=mock_db), \
             patch("app.tasks.build_coordinator", return_value=coordinator) as mock_build:
            from app.tasks import fanout_drive
            result = fanout_drive(snapshot.to_payload(), "created")

        mock_build.assert_called_once_with(mock_db)
        run_snapshot, run_event = coordinator.run.call_args[0]
        assert run_snapshot == snapshot
        assert run_event == EventKind.CREATED
        assert result == {"drive_id": 42, "event": "created", "eligible": 5}
        mock_db.close.assert_called_once()

    def test_unexpected_error_is_logged_and_reported(self, snapshot_factory):
        mock_db = MagicMock()
        coordinator = MagicMock()
        coordinator.run.side_effect = RuntimeError("boom")

        with patch("app.tasks.SessionLocal", return_value=mock_db), \
             patch("app.tasks.build_coordinator", return_value=coordinator):
            from app.tasks import fanout_drive
            result = fanout_drive(snapshot_factory(drive_id=7).to_payload(), "updated")

        assert result["drive_id"] == 7
        assert "boom" in result["error"]
        mock_db.close.assert_called_once()


class TestCloseExpiredDrivesTask:
    def test_reports_closed_count(self):
        mock_db = MagicMock()
        mock_db.execute.return_value = MagicMock(rowcount=2)

        with patch("app.tasks.SessionLocal", return_value=mock_db):
            from app.tasks import close_expired_drives
            result = close_expired_drives()

        assert result == {"closed": 2}
        mock_db.close.assert_called_once()

    def test_database_error_rolls_back(self):
        mock_db = MagicMock()
        mock_db.execute.side_effect = RuntimeError("db down")

        with patch("app.tasks.SessionLocal", return_value=mock_db):
            from app.tasks import close_expired_drives
            result = close_expired_drives()

        assert result["closed"] == 0
        assert "db down" in result["error"]
        mock_db.rollback.assert_called_once()


class TestEnqueueFanout:
    def test_sends_snapshot_payload(self, snapshot_factory):
        snapshot = snapshot_factory(drive_id=3)
        with patch("app.tasks.celery_app") as mock_celery:
            from app.tasks import enqueue_fanout
            enqueue_fanout(snapshot, EventKind.UPDATED)

        name = mock_celery.send_task.call_args[0][0]
        args = mock_celery.send_task.call_args[1]["args"]
        assert name == "app.tasks.fanout_drive"
        assert args == [snapshot.to_payload(), "updated"]

    def test_broker_outage_is_swallowed(self, snapshot_factory):
        with patch("app.tasks.celery_app") as mock_celery:
            mock_celery.send_task.side_effect = ConnectionError("redis unreachable")
            from app.tasks import enqueue_fanout
            enqueue_fanout(snapshot_factory(), EventKind.CREATED)

        mock_celery.send_task.assert_called_once()


class TestDriveSnapshot:
    def test_payload_survives_json_transport(self):
        drive = MagicMock()
        drive.id = 5
        drive.company_name = "Acme"
        drive.job_role = "SDE"
        drive.deadline = datetime(2026, 12, 1, 9, 30, tzinfo=timezone.utc)
        drive.status = DriveStatus.OPEN
        drive.drive_date = None
        drive.min_cgpa = 7.0
        drive.max_backlogs_allowed = 1
        drive.eligible_departments = ["ECE", "CSE"]
        drive.eligible_batches = [2026]

        snapshot = DriveSnapshot.from_model(drive)
        restored = DriveSnapshot.from_payload(snapshot.to_payload())

        assert restored == snapshot
        assert restored.criteria.eligible_departments == frozenset({"CSE", "ECE"})
