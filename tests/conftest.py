import threading
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, MagicMock
from fastapi.testclient import TestClient

from main import app
from app.database import get_db
from app.auth.dependencies import get_current_user
from app.models.user import User, UserRole
from app.models.drive import DriveStatus
from app.services.drive_snapshot import DriveSnapshot
from app.services.eligibility import EligibilityCriteria, StudentEligibilityProfile
from app.services.errors import DispatchError


@pytest.fixture
def mock_db():
    """Mock database session"""
    db = MagicMock()
    db.query.return_value = db
    db.filter.return_value = db
    db.first.return_value = None
    db.all.return_value = []
    db.count.return_value = 0
    return db


@pytest.fixture
def mock_student():
    """Mock student user"""
    user = Mock(spec=User)
    user.id = 2
    user.email = "student@test.com"
    user.role = UserRole.STUDENT
    user.is_active = True
    user.password_hash = "$2b$12$test_hash"
    return user


@pytest.fixture
def mock_admin():
    """Mock admin user"""
    user = Mock(spec=User)
    user.id = 3
    user.email = "admin@test.com"
    user.role = UserRole.ADMIN
    user.is_active = True
    user.password_hash = "$2b$12$test_hash"
    return user


@pytest.fixture
def client_with_student(mock_db, mock_student):
    """TestClient with student auth and mocked DB"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_student
    client = TestClient(app)
    yield client, mock_db, mock_student
    app.dependency_overrides.clear()


@pytest.fixture
def client_with_admin(mock_db, mock_admin):
    """TestClient with admin auth and mocked DB"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: mock_admin
    client = TestClient(app)
    yield client, mock_db, mock_admin
    app.dependency_overrides.clear()


@pytest.fixture
def unauthenticated_client(mock_db):
    """TestClient with mocked DB but no auth"""
    app.dependency_overrides[get_db] = lambda: mock_db
    client = TestClient(app)
    yield client, mock_db
    app.dependency_overrides.clear()


# ── in-memory collaborators for the notification core ───────────────────


class FakeStudentStore:
    """Returns the whole population; the evaluator is expected to filter."""

    def __init__(self, students):
        self.students = list(students)
        self.calls = []

    def query_eligible_pool(self, criteria):
        self.calls.append(criteria)
        return list(self.students)


class FakeDriveStore:
    def __init__(self, drives=None):
        self.drives = {d.id: d for d in (drives or [])}
        self.writes = 0

    def exists(self, drive_id):
        return drive_id in self.drives

    def close_expired(self):
        now = datetime.now(timezone.utc)
        closed = 0
        for drive in self.drives.values():
            if drive.status == DriveStatus.OPEN and drive.deadline < now:
                drive.status = DriveStatus.CLOSED
                closed += 1
        self.writes += closed
        return closed


class FakePushGateway:
    """Records every multicast; fail_when(tokens) decides which batches blow up."""

    def __init__(self, fail_when=None, success_ratio=1.0, delay=0.0):
        self.fail_when = fail_when
        self.success_ratio = success_ratio
        self.delay = delay
        self.batches = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def send_multicast(self, tokens, title, body, data=None):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            self.batches.append({"tokens": list(tokens), "title": title, "body": body, "data": data})
            if self.fail_when and self.fail_when(tokens):
                raise DispatchError("provider unavailable", retryable=False, status_code=400)
            return int(len(tokens) * self.success_ratio)
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeWhatsAppGateway:
    def __init__(self, failing_numbers=()):
        self.failing_numbers = set(failing_numbers)
        self.sent = []

    def send_template(self, to, template_name, language_code, components=None, send_id=None):
        self.sent.append({
            "to": to,
            "template": template_name,
            "language": language_code,
            "components": components,
            "send_id": send_id,
        })
        if to in self.failing_numbers:
            raise DispatchError("API error 400: invalid recipient", retryable=False, status_code=400)


@pytest.fixture
def fake_student_store():
    return FakeStudentStore


@pytest.fixture
def fake_drive_store():
    return FakeDriveStore


@pytest.fixture
def fake_push_gateway():
    return FakePushGateway


@pytest.fixture
def fake_whatsapp_gateway():
    return FakeWhatsAppGateway


def make_student(student_id=1, department="CSE", batch_year=2026, cgpa=8.0, backlogs=0,
                 willingness=None, fcm_token=None, mobile_number=None):
    return StudentEligibilityProfile(
        student_id=student_id,
        department=department,
        batch_year=batch_year,
        cgpa=cgpa,
        backlogs=backlogs,
        placement_willingness=willingness,
        fcm_token=fcm_token,
        mobile_number=mobile_number,
    )


def make_snapshot(drive_id=10, min_cgpa=0.0, max_backlogs=0, departments=(), batches=(),
                  company="Acme", role="SDE", status=DriveStatus.OPEN, deadline=None):
    return DriveSnapshot(
        id=drive_id,
        company_name=company,
        job_role=role,
        deadline=deadline or datetime(2026, 11, 30, 17, 0, tzinfo=timezone.utc),
        status=status,
        criteria=EligibilityCriteria.from_values(
            min_cgpa=min_cgpa,
            max_backlogs_allowed=max_backlogs,
            eligible_departments=departments,
            eligible_batches=batches,
        ),
    )


@pytest.fixture
def student_factory():
    return make_student


@pytest.fixture
def snapshot_factory():
    return make_snapshot


@pytest.fixture
def expired_deadline():
    return datetime.now(timezone.utc) - timedelta(hours=1)
