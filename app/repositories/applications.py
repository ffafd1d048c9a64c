"""Drive application store backed by SQLAlchemy."""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.application import DriveApplication, ApplicationStatus
from app.models.drive import PlacementDrive
from app.models.student import StudentPersonal, StudentAcademics
from app.models.user import User


class SqlApplicationStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, drive_id: int, student_id: int) -> Optional[DriveApplication]:
        return (
            self.db.query(DriveApplication)
            .filter(DriveApplication.drive_id == drive_id, DriveApplication.student_id == student_id)
            .first()
        )

    def set_status(self, drive_id: int, student_id: int, status: ApplicationStatus) -> DriveApplication:
        """
        Insert the application or update its status. applied_at is kept from
        the first insert, so re-applying after a withdrawal doesn't reorder.
        """
        application = self.get(drive_id, student_id)
        if application is None:
            application = DriveApplication(drive_id=drive_id, student_id=student_id, status=status)
            self.db.add(application)
            try:
                self.db.commit()
            except IntegrityError:
                # Lost a race with a concurrent insert for the same pair
                self.db.rollback()
                application = self.get(drive_id, student_id)
                if application is None:
                    raise
                application.status = status
                self.db.commit()
        else:
            application.status = status
            self.db.commit()
        self.db.refresh(application)
        return application

    def update_status(self, application: DriveApplication, status: ApplicationStatus) -> DriveApplication:
        application.status = status
        self.db.commit()
        self.db.refresh(application)
        return application

    def statuses_for_student(self, student_id: int, drive_ids: Iterable[int]) -> Dict[int, ApplicationStatus]:
        drive_ids = list(drive_ids)
        if not drive_ids:
            return {}
        rows = (
            self.db.query(DriveApplication.drive_id, DriveApplication.status)
            .filter(DriveApplication.student_id == student_id, DriveApplication.drive_id.in_(drive_ids))
            .all()
        )
        return {drive_id: status for drive_id, status in rows}

    def list_for_student(self, student_id: int) -> List[dict]:
        """The student's applications with the drive they belong to, newest first."""
        rows = (
            self.db.query(
                DriveApplication.drive_id,
                PlacementDrive.company_name,
                PlacementDrive.job_role,
                DriveApplication.status,
                DriveApplication.applied_at,
            )
            .join(PlacementDrive, PlacementDrive.id == DriveApplication.drive_id)
            .filter(DriveApplication.student_id == student_id)
            .order_by(DriveApplication.applied_at.desc(), DriveApplication.id.desc())
            .all()
        )
        return [
            {
                "drive_id": row[0],
                "company_name": row[1],
                "job_role": row[2],
                "status": row[3],
                "applied_at": row[4],
            }
            for row in rows
        ]

    def list_applicants(self, drive_id: int) -> List[dict]:
        """Everyone who responded to the drive, with the profile fields a recruiter asks for."""
        rows = (
            self.db.query(
                DriveApplication.student_id,
                StudentPersonal.full_name,
                StudentPersonal.register_number,
                User.email,
                StudentPersonal.department,
                func.coalesce(StudentAcademics.ug_cgpa, 0.0),
                DriveApplication.status,
                DriveApplication.applied_at,
            )
            .join(User, User.id == DriveApplication.student_id)
            .outerjoin(StudentPersonal, StudentPersonal.user_id == DriveApplication.student_id)
            .outerjoin(StudentAcademics, StudentAcademics.user_id == DriveApplication.student_id)
            .filter(DriveApplication.drive_id == drive_id)
            .order_by(DriveApplication.applied_at.desc(), DriveApplication.id.desc())
            .all()
        )
        return [
            {
                "student_id": row[0],
                "full_name": row[1],
                "register_number": row[2],
                "email": row[3],
                "department": row[4],
                "cgpa": float(row[5] or 0.0),
                "status": row[6],
                "applied_at": row[7],
            }
            for row in rows
        ]
