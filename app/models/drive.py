import enum
from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class DriveStatus(str, enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PlacementDrive(Base):
    """A placement opportunity posted by an admin, with eligibility rules and a deadline"""
    __tablename__ = "placement_drives"

    id = Column(Integer, primary_key=True, index=True)
    posted_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    company_name = Column(String(255), nullable=False, index=True)
    job_role = Column(String(255), nullable=False)
    job_description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    drive_type = Column(String(50), nullable=True)  # Full-Time, Internship, ...
    company_category = Column(String(50), nullable=True)  # IT, Core, Product, ...
    ctc_display = Column(String(100), nullable=True)

    # Eligibility
    min_cgpa = Column(Float, nullable=False, default=0.0)
    max_backlogs_allowed = Column(Integer, nullable=False, default=0)
    eligible_batches = Column(JSONB, nullable=False, default=list)
    eligible_departments = Column(JSONB, nullable=False, default=list)

    drive_date = Column(Date, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(Enum(DriveStatus), nullable=False, default=DriveStatus.DRAFT, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    poster = relationship("User", back_populates="drives_posted")
    applications = relationship("DriveApplication", back_populates="drive", passive_deletes=True)

    def __repr__(self):
        return f"<PlacementDrive(id={self.id}, company={self.company_name}, status={self.status})>"
