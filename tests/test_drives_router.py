"""Tests for the admin drive endpoints (app/routers/drives.py)"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.models.drive import PlacementDrive, DriveStatus
from app.services.fanout import EventKind


def _drive(**overrides):
    values = dict(
        id=1,
        posted_by=3,
        company_name="Acme",
        job_role="SDE",
        min_cgpa=7.0,
        max_backlogs_allowed=0,
        eligible_departments=["CSE"],
        eligible_batches=[2026],
        deadline=datetime(2026, 11, 30, 17, 0, tzinfo=timezone.utc),
        status=DriveStatus.OPEN,
        created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return PlacementDrive(**values)


def _persist(drive):
    drive.id = 11
    drive.created_at = datetime(2026, 10, 1, tzinfo=timezone.utc)
    return drive


CREATE_BODY = {
    "company_name": "Acme",
    "job_role": "SDE",
    "min_cgpa": 7.0,
    "max_backlogs_allowed": 0,
    "eligible_departments": ["CSE"],
    "eligible_batches": [2026],
    "deadline": "2026-11-30T17:00:00Z",
}


class TestCreateDrive:
    def test_create_commits_then_enqueues_fanout(self, client_with_admin):
        """
        GIVEN an admin posts a valid drive
        THEN it is stored as open and fan-out is queued with a snapshot of it
        """
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            MockStore.return_value.add.side_effect = _persist
            response = client.post("/admin/drives", json=CREATE_BODY)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 11
        assert data["status"] == "open"
        assert data["posted_by"] == 3

        stored = MockStore.return_value.add.call_args[0][0]
        assert stored.status == DriveStatus.OPEN

        snapshot, event = mock_enqueue.call_args[0]
        assert event == EventKind.CREATED
        assert snapshot.id == 11
        assert snapshot.criteria.eligible_departments == frozenset({"CSE"})

    def test_create_succeeds_when_broker_is_down(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.tasks.celery_app") as mock_celery:
            MockStore.return_value.add.side_effect = _persist
            mock_celery.send_task.side_effect = ConnectionError("redis unreachable")
            response = client.post("/admin/drives", json=CREATE_BODY)

        assert response.status_code == 201
        mock_celery.send_task.assert_called_once()

    @pytest.mark.parametrize("overrides", [
        {"min_cgpa": 11},
        {"max_backlogs_allowed": -1},
        {"eligible_departments": ["CSE", " "]},
        {"company_name": ""},
    ])
    def test_invalid_input_is_rejected_without_side_effects(self, client_with_admin, overrides):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            response = client.post("/admin/drives", json={**CREATE_BODY, **overrides})

        assert response.status_code == 422
        MockStore.return_value.add.assert_not_called()
        mock_enqueue.assert_not_called()

    def test_student_cannot_create(self, client_with_student):
        client, _, _ = client_with_student
        with patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            response = client.post("/admin/drives", json=CREATE_BODY)
        assert response.status_code == 403
        mock_enqueue.assert_not_called()

    def test_requires_authentication(self, unauthenticated_client):
        client, _ = unauthenticated_client
        response = client.post("/admin/drives", json=CREATE_BODY)
        assert response.status_code in (401, 403)


class TestUpdateDrive:
    def test_update_saves_and_enqueues_update_event(self, client_with_admin):
        client, _, _ = client_with_admin
        drive = _drive()
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            MockStore.return_value.get.return_value = drive
            MockStore.return_value.save.side_effect = lambda d: d
            response = client.put("/admin/drives/1", json={
                "deadline": "2026-12-15T17:00:00Z",
                "eligible_departments": [],
            })

        assert response.status_code == 200
        assert drive.eligible_departments == []
        assert drive.deadline == datetime(2026, 12, 15, 17, 0, tzinfo=timezone.utc)
        assert drive.min_cgpa == 7.0

        snapshot, event = mock_enqueue.call_args[0]
        assert event == EventKind.UPDATED
        assert snapshot.criteria.eligible_departments == frozenset()

    def test_update_missing_drive(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            MockStore.return_value.get.return_value = None
            response = client.put("/admin/drives/99", json={"job_role": "SRE"})

        assert response.status_code == 404
        mock_enqueue.assert_not_called()

    def test_null_required_field_is_rejected(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            MockStore.return_value.get.return_value = _drive()
            response = client.put("/admin/drives/1", json={"deadline": None})

        assert response.status_code == 422
        MockStore.return_value.save.assert_not_called()
        mock_enqueue.assert_not_called()


class TestDriveStatus:
    def test_hold_open_drive(self, client_with_admin):
        client, _, _ = client_with_admin
        drive = _drive(status=DriveStatus.OPEN)
        with patch("app.routers.drives.SqlDriveStore") as MockStore, \
             patch("app.routers.drives.enqueue_fanout") as mock_enqueue:
            MockStore.return_value.get.return_value = drive
            MockStore.return_value.save.side_effect = lambda d: d
            response = client.post("/admin/drives/1/status", json={"status": "on_hold"})

        assert response.status_code == 200
        assert response.json()["status"] == "on_hold"
        mock_enqueue.assert_not_called()

    def test_reopening_closed_drive_conflicts(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore:
            MockStore.return_value.get.return_value = _drive(status=DriveStatus.CLOSED)
            response = client.post("/admin/drives/1/status", json={"status": "open"})

        assert response.status_code == 409
        MockStore.return_value.save.assert_not_called()


class TestReadAndDelete:
    def test_list_with_status_filter(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore:
            MockStore.return_value.list.return_value = [_drive()]
            response = client.get("/admin/drives?status=open")

        assert response.status_code == 200
        assert len(response.json()) == 1
        MockStore.return_value.list.assert_called_once_with(status=DriveStatus.OPEN)

    def test_list_with_unknown_status(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore"):
            response = client.get("/admin/drives?status=bogus")
        assert response.status_code == 422

    def test_get_missing_drive(self, client_with_admin):
        client, _, _ = client_with_admin
        with patch("app.routers.drives.SqlDriveStore") as MockStore:
            MockStore.return_value.get.return_value = None
            response = client.get("/admin/drives/5")
        assert response.status_code == 404

    def test_delete(self, client_with_admin):
        client, _, _ = client_with_admin
        drive = _drive()
        with patch("app.routers.drives.SqlDriveStore") as MockStore:
            MockStore.return_value.get.return_value = drive
            response = client.delete("/admin/drives/1")

        assert response.status_code == 204
        MockStore.return_value.delete.assert_called_once_with(drive)


class TestEligibleDrivesForStudent:
    def test_lists_only_drives_the_student_qualifies_for(self, client_with_student, student_factory):
        client, _, _ = client_with_student
        profile = student_factory(student_id=2, department="CSE", cgpa=8.0)
        drives = [
            _drive(id=1, eligible_departments=["CSE"], min_cgpa=7.0),
            _drive(id=2, eligible_departments=["ECE"], min_cgpa=0.0),
            _drive(id=3, eligible_departments=[], min_cgpa=8.5),
        ]
        with patch("app.routers.student_drives.SqlStudentProfileStore") as MockProfiles, \
             patch("app.routers.student_drives.SqlDriveStore") as MockDrives:
            MockProfiles.return_value.get_profile.return_value = profile
            MockDrives.return_value.list_open_unexpired.return_value = drives
            response = client.get("/drives/eligible")

        assert response.status_code == 200
        assert [d["id"] for d in response.json()] == [1]
        MockProfiles.return_value.get_profile.assert_called_once_with(2)

    def test_missing_profile(self, client_with_student):
        client, _, _ = client_with_student
        with patch("app.routers.student_drives.SqlStudentProfileStore") as MockProfiles:
            MockProfiles.return_value.get_profile.return_value = None
            response = client.get("/drives/eligible")
        assert response.status_code == 404

    def test_admin_is_forbidden(self, client_with_admin):
        client, _, _ = client_with_admin
        response = client.get("/drives/eligible")
        assert response.status_code == 403
