# Database models
from .base import Base
from .user import User, UserRole
from .student import StudentPersonal, StudentAcademics, WILLINGNESS_INTERESTED
from .drive import PlacementDrive, DriveStatus
from .application import DriveApplication, ApplicationStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "StudentPersonal",
    "StudentAcademics",
    "WILLINGNESS_INTERESTED",
    "PlacementDrive",
    "DriveStatus",
    "DriveApplication",
    "ApplicationStatus",
]
