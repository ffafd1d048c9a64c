from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.application import ApplicationStatus
from app.schemas.drives import DriveOut


class ApplicationOut(BaseModel):
    drive_id: int
    student_id: int
    status: ApplicationStatus
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentApplicationOut(BaseModel):
    drive_id: int
    company_name: str
    job_role: str
    status: ApplicationStatus
    applied_at: Optional[datetime] = None


class ApplicantOut(BaseModel):
    student_id: int
    full_name: Optional[str] = None
    register_number: Optional[str] = None
    email: str
    department: Optional[str] = None
    cgpa: float = 0.0
    status: ApplicationStatus
    applied_at: Optional[datetime] = None


class ApplicationStatusUpdate(BaseModel):
    """Admin decision; status must be shortlisted, placed or rejected."""
    drive_id: int
    student_id: int
    status: str


class EligibleDriveOut(DriveOut):
    # None until the student opts in or out
    application_status: Optional[ApplicationStatus] = None
