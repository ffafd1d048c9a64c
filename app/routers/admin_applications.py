import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.auth.dependencies import require_role
from app.models.user import User, UserRole
from app.repositories.applications import SqlApplicationStore
from app.schemas.applications import ApplicationOut, ApplicationStatusUpdate
from app.services import applications
from app.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/applications", tags=["applications"])


@router.put("/status", response_model=ApplicationOut)
def update_application_status(
    request: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Mark an application shortlisted, placed or rejected."""
    try:
        application = applications.set_admin_status(
            SqlApplicationStore(db), request.drive_id, request.student_id, request.status,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(
        "Admin %s marked application drive=%s student=%s %s",
        current_user.id, request.drive_id, request.student_id, application.status.value,
    )
    return application
