from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.auth.dependencies import require_role
from app.models.user import User, UserRole
from app.repositories.applications import SqlApplicationStore
from app.repositories.drives import SqlDriveStore
from app.repositories.students import SqlStudentProfileStore
from app.schemas.applications import ApplicationOut, EligibleDriveOut, StudentApplicationOut
from app.schemas.drives import DriveOut
from app.services import applications
from app.services.drive_snapshot import DriveSnapshot
from app.services.eligibility import StudentEligibilityProfile, is_eligible
from app.services.errors import ApplicationConflictError, NotEligibleError

router = APIRouter(prefix="/drives", tags=["drives"])


def _profile_or_404(db: Session, student_id: int) -> StudentEligibilityProfile:
    profile = SqlStudentProfileStore(db).get_profile(student_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return profile


def _snapshot_or_404(db: Session, drive_id: int) -> DriveSnapshot:
    drive = SqlDriveStore(db).get(drive_id)
    if not drive:
        raise HTTPException(status_code=404, detail="Drive not found")
    return DriveSnapshot.from_model(drive)


@router.get("/eligible", response_model=List[EligibleDriveOut])
def list_eligible_drives(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.STUDENT)),
):
    """Open drives, not past their deadline, that the current student qualifies for."""
    profile = _profile_or_404(db, current_user.id)

    drives = SqlDriveStore(db).list_open_unexpired()
    eligible = [d for d in drives if is_eligible(profile, DriveSnapshot.from_model(d).criteria)]
    statuses = SqlApplicationStore(db).statuses_for_student(current_user.id, [d.id for d in eligible])

    return [
        EligibleDriveOut(
            **DriveOut.model_validate(d).model_dump(),
            application_status=statuses.get(d.id),
        )
        for d in eligible
    ]


@router.get("/applications", response_model=List[StudentApplicationOut])
def list_my_applications(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.STUDENT)),
):
    """Every drive the student has opted in or out of, newest first."""
    return SqlApplicationStore(db).list_for_student(current_user.id)


@router.post("/{drive_id}/apply", response_model=ApplicationOut)
def apply_to_drive(
    drive_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.STUDENT)),
):
    snapshot = _snapshot_or_404(db, drive_id)
    profile = _profile_or_404(db, current_user.id)
    try:
        return applications.apply(SqlApplicationStore(db), snapshot, profile)
    except NotEligibleError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ApplicationConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{drive_id}/apply", response_model=ApplicationOut)
def withdraw_from_drive(
    drive_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.STUDENT)),
):
    snapshot = _snapshot_or_404(db, drive_id)
    try:
        return applications.withdraw(SqlApplicationStore(db), snapshot, current_user.id)
    except ApplicationConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
