from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime, timezone

from app.models.drive import DriveStatus


def _aware(v: Optional[datetime]) -> Optional[datetime]:
    """Deadlines without an offset are taken as UTC."""
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


def _clean_departments(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    cleaned = []
    for dept in v:
        dept = dept.strip()
        if not dept:
            raise ValueError("eligible_departments cannot contain blank entries")
        if dept not in cleaned:
            cleaned.append(dept)
    return cleaned


class DriveCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    job_role: str = Field(..., min_length=1, max_length=255)
    job_description: Optional[str] = None
    location: Optional[str] = None
    drive_type: Optional[str] = None
    company_category: Optional[str] = None
    ctc_display: Optional[str] = None

    min_cgpa: float = Field(default=0.0, ge=0.0, le=10.0)
    max_backlogs_allowed: int = Field(default=0, ge=0)
    eligible_departments: List[str] = []
    eligible_batches: List[int] = []

    drive_date: Optional[date] = None
    deadline: datetime

    @field_validator("deadline")
    @classmethod
    def deadline_tz(cls, v: datetime) -> datetime:
        return _aware(v)

    @field_validator("eligible_departments")
    @classmethod
    def clean_departments(cls, v: List[str]) -> List[str]:
        return _clean_departments(v)


class DriveUpdate(BaseModel):
    """Partial update. Omitted fields stay as they are; an empty list clears a restriction."""
    company_name: Optional[str] = Field(None, min_length=1, max_length=255)
    job_role: Optional[str] = Field(None, min_length=1, max_length=255)
    job_description: Optional[str] = None
    location: Optional[str] = None
    drive_type: Optional[str] = None
    company_category: Optional[str] = None
    ctc_display: Optional[str] = None

    min_cgpa: Optional[float] = Field(None, ge=0.0, le=10.0)
    max_backlogs_allowed: Optional[int] = Field(None, ge=0)
    eligible_departments: Optional[List[str]] = None
    eligible_batches: Optional[List[int]] = None

    drive_date: Optional[date] = None
    deadline: Optional[datetime] = None

    @field_validator("deadline")
    @classmethod
    def deadline_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _aware(v)

    @field_validator("eligible_departments")
    @classmethod
    def clean_departments(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_departments(v)


class DriveStatusUpdate(BaseModel):
    status: DriveStatus


class DriveOut(BaseModel):
    id: int
    posted_by: int
    company_name: str
    job_role: str
    job_description: Optional[str] = None
    location: Optional[str] = None
    drive_type: Optional[str] = None
    company_category: Optional[str] = None
    ctc_display: Optional[str] = None
    min_cgpa: float
    max_backlogs_allowed: int
    eligible_departments: List[str] = []
    eligible_batches: List[int] = []
    drive_date: Optional[date] = None
    deadline: datetime
    status: DriveStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
