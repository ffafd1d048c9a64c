from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base

WILLINGNESS_INTERESTED = "Interested"


class StudentPersonal(Base):
    """Personal profile of a student: department, batch and contact details"""
    __tablename__ = "student_personal"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=True)
    register_number = Column(String(50), unique=True, nullable=True, index=True)
    department = Column(String(100), nullable=True, index=True)
    batch_year = Column(Integer, nullable=True, index=True)
    mobile_number = Column(String(20), nullable=True)
    # NULL means "not asked yet"; anything other than "Interested" is an opt-out
    placement_willingness = Column(String(50), nullable=True)

    user = relationship("User", back_populates="personal")


class StudentAcademics(Base):
    """Academic record. Students imported without grades have no row here."""
    __tablename__ = "student_academics"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    ug_cgpa = Column(Float, nullable=True)
    current_backlogs = Column(Integer, nullable=True)

    user = relationship("User", back_populates="academics")
