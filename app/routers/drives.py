import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.auth.dependencies import require_role
from app.models.user import User, UserRole
from app.models.drive import PlacementDrive, DriveStatus
from app.repositories.applications import SqlApplicationStore
from app.repositories.drives import SqlDriveStore
from app.schemas.applications import ApplicantOut
from app.schemas.drives import DriveCreate, DriveUpdate, DriveStatusUpdate, DriveOut
from app.services import drive_lifecycle
from app.services.drive_snapshot import DriveSnapshot
from app.services.eligibility import EligibilityCriteria
from app.services.errors import ValidationError, InvalidTransitionError
from app.services.fanout import EventKind
from app.tasks import enqueue_fanout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/drives", tags=["drives"])

UPDATABLE_FIELDS = (
    "company_name", "job_role", "job_description", "location", "drive_type",
    "company_category", "ctc_display", "min_cgpa", "max_backlogs_allowed",
    "eligible_departments", "eligible_batches", "drive_date", "deadline",
)


def _validate_criteria(min_cgpa, max_backlogs_allowed, eligible_departments, eligible_batches) -> None:
    try:
        EligibilityCriteria.from_values(
            min_cgpa=min_cgpa,
            max_backlogs_allowed=max_backlogs_allowed,
            eligible_departments=eligible_departments,
            eligible_batches=eligible_batches,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


def _get_or_404(store: SqlDriveStore, drive_id: int) -> PlacementDrive:
    drive = store.get(drive_id)
    if not drive:
        raise HTTPException(status_code=404, detail="Drive not found")
    return drive


@router.get("", response_model=List[DriveOut])
def list_drives(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """List all drives ordered by deadline, optionally filtered by status."""
    drive_status = None
    if status_filter:
        try:
            drive_status = DriveStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Invalid status: {status_filter}")
    return SqlDriveStore(db).list(status=drive_status)


@router.post("", response_model=DriveOut, status_code=status.HTTP_201_CREATED)
def create_drive(
    request: DriveCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Create a drive and notify eligible students in the background."""
    _validate_criteria(
        request.min_cgpa, request.max_backlogs_allowed,
        request.eligible_departments, request.eligible_batches,
    )

    store = SqlDriveStore(db)
    drive = PlacementDrive(
        posted_by=current_user.id,
        status=drive_lifecycle.initial_status(),
        **request.model_dump(),
    )
    drive = store.add(drive)

    # Only after the commit: the worker must never see an uncommitted drive
    enqueue_fanout(DriveSnapshot.from_model(drive), EventKind.CREATED)
    return drive


@router.get("/{drive_id}", response_model=DriveOut)
def get_drive(
    drive_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    return _get_or_404(SqlDriveStore(db), drive_id)


@router.put("/{drive_id}", response_model=DriveOut)
def update_drive(
    drive_id: int,
    request: DriveUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Edit a drive (extend deadline, change criteria, ...) and notify eligible students."""
    store = SqlDriveStore(db)
    drive = _get_or_404(store, drive_id)

    changes = request.model_dump(exclude_unset=True)
    for key in ("company_name", "job_role", "deadline", "min_cgpa", "max_backlogs_allowed"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=422, detail=f"{key} cannot be null")

    _validate_criteria(
        changes.get("min_cgpa", drive.min_cgpa),
        changes.get("max_backlogs_allowed", drive.max_backlogs_allowed),
        changes.get("eligible_departments", drive.eligible_departments),
        changes.get("eligible_batches", drive.eligible_batches),
    )

    for key in UPDATABLE_FIELDS:
        if key not in changes:
            continue
        value = changes[key]
        if value is None and key in ("eligible_departments", "eligible_batches"):
            value = []
        setattr(drive, key, value)

    drive = store.save(drive)

    enqueue_fanout(DriveSnapshot.from_model(drive), EventKind.UPDATED)
    return drive


@router.post("/{drive_id}/status", response_model=DriveOut)
def change_drive_status(
    drive_id: int,
    request: DriveStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Manual status change (put on hold, reopen, complete, cancel). Does not notify."""
    store = SqlDriveStore(db)
    drive = _get_or_404(store, drive_id)
    try:
        drive_lifecycle.transition(drive, request.status)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return store.save(drive)


@router.delete("/{drive_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_drive(
    drive_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    store = SqlDriveStore(db)
    drive = _get_or_404(store, drive_id)
    store.delete(drive)
    logger.info("Drive %s deleted by user %s", drive_id, current_user.id)


@router.get("/{drive_id}/applicants", response_model=List[ApplicantOut])
def list_drive_applicants(
    drive_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Students who opted in or out of the drive, most recent first."""
    if not SqlDriveStore(db).exists(drive_id):
        raise HTTPException(status_code=404, detail="Drive not found")
    return SqlApplicationStore(db).list_applicants(drive_id)
