"""Drive store backed by SQLAlchemy."""
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.drive import PlacementDrive, DriveStatus


class SqlDriveStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, drive_id: int) -> Optional[PlacementDrive]:
        return self.db.query(PlacementDrive).filter(PlacementDrive.id == drive_id).first()

    def exists(self, drive_id: int) -> bool:
        return self.db.query(PlacementDrive.id).filter(PlacementDrive.id == drive_id).first() is not None

    def list(self, status: Optional[DriveStatus] = None) -> List[PlacementDrive]:
        query = self.db.query(PlacementDrive)
        if status is not None:
            query = query.filter(PlacementDrive.status == status)
        return query.order_by(PlacementDrive.deadline.asc()).all()

    def list_open_unexpired(self) -> List[PlacementDrive]:
        return (
            self.db.query(PlacementDrive)
            .filter(PlacementDrive.status == DriveStatus.OPEN, PlacementDrive.deadline > func.now())
            .order_by(PlacementDrive.deadline.asc())
            .all()
        )

    def add(self, drive: PlacementDrive) -> PlacementDrive:
        self.db.add(drive)
        self.db.commit()
        self.db.refresh(drive)
        return drive

    def save(self, drive: PlacementDrive) -> PlacementDrive:
        self.db.commit()
        self.db.refresh(drive)
        return drive

    def delete(self, drive: PlacementDrive) -> None:
        self.db.delete(drive)
        self.db.commit()

    def close_expired(self) -> int:
        """
        Close every open drive whose deadline has passed.

        Compares against the database clock (now()) so app servers with a
        skewed clock can't close drives early or late. Re-running with nothing
        expired touches zero rows.
        """
        result = self.db.execute(
            update(PlacementDrive)
            .where(PlacementDrive.status == DriveStatus.OPEN, PlacementDrive.deadline < func.now())
            .values(status=DriveStatus.CLOSED)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0
