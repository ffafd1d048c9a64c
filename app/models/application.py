import enum
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class ApplicationStatus(str, enum.Enum):
    # Set by the student
    OPTED_IN = "opted_in"
    OPTED_OUT = "opted_out"
    # Set by an admin once the recruiter has responded
    SHORTLISTED = "shortlisted"
    PLACED = "placed"
    REJECTED = "rejected"


class DriveApplication(Base):
    """A student's response to a drive. One row per (drive, student); re-applying updates it."""
    __tablename__ = "drive_applications"
    __table_args__ = (
        UniqueConstraint("drive_id", "student_id", name="uq_drive_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    drive_id = Column(Integer, ForeignKey("placement_drives.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.OPTED_IN)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    drive = relationship("PlacementDrive", back_populates="applications")
    student = relationship("User", back_populates="applications")

    def __repr__(self):
        return f"<DriveApplication(drive={self.drive_id}, student={self.student_id}, status={self.status})>"
