"""
Immutable copy of a committed drive, handed to the fan-out task.

The Celery payload is JSON, so the snapshot round-trips through plain dicts.
Fan-out always works from this copy; later edits to the row don't leak into
a dispatch that is already queued.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.models.drive import DriveStatus
from app.services.eligibility import EligibilityCriteria


@dataclass(frozen=True)
class DriveSnapshot:
    id: int
    company_name: str
    job_role: str
    deadline: datetime
    status: DriveStatus
    criteria: EligibilityCriteria
    drive_date: Optional[date] = None

    @classmethod
    def from_model(cls, drive) -> "DriveSnapshot":
        return cls(
            id=drive.id,
            company_name=drive.company_name,
            job_role=drive.job_role,
            deadline=drive.deadline,
            status=DriveStatus(drive.status),
            drive_date=drive.drive_date,
            criteria=EligibilityCriteria.from_values(
                min_cgpa=drive.min_cgpa,
                max_backlogs_allowed=drive.max_backlogs_allowed,
                eligible_departments=drive.eligible_departments,
                eligible_batches=drive.eligible_batches,
            ),
        )

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "company_name": self.company_name,
            "job_role": self.job_role,
            "deadline": self.deadline.isoformat(),
            "status": self.status.value,
            "drive_date": self.drive_date.isoformat() if self.drive_date else None,
            "criteria": self.criteria.to_dict(),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "DriveSnapshot":
        drive_date = payload.get("drive_date")
        return cls(
            id=payload["id"],
            company_name=payload["company_name"],
            job_role=payload["job_role"],
            deadline=datetime.fromisoformat(payload["deadline"]),
            status=DriveStatus(payload["status"]),
            drive_date=date.fromisoformat(drive_date) if drive_date else None,
            criteria=EligibilityCriteria.from_values(**payload.get("criteria", {})),
        )
