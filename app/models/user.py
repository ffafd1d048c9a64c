from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from .base import Base


class UserRole(str, enum.Enum):
    """User role enumeration"""
    ADMIN = "admin"
    STUDENT = "student"


class User(Base):
    """User model for authentication and authorization"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Device token for push notifications, set by the mobile app
    fcm_token = Column(String(512), nullable=True)

    # Relationships
    personal = relationship("StudentPersonal", back_populates="user", uselist=False)
    academics = relationship("StudentAcademics", back_populates="user", uselist=False)
    drives_posted = relationship("PlacementDrive", back_populates="poster")
    applications = relationship("DriveApplication", back_populates="student", passive_deletes=True)
