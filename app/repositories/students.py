"""
Student profile store backed by SQLAlchemy.

Students without a student_academics row are read as CGPA 0 / 0 backlogs
(outer join + coalesce), same as everywhere else eligibility is computed.
"""
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.user import User, UserRole
from app.models.student import StudentPersonal, StudentAcademics, WILLINGNESS_INTERESTED
from app.services.eligibility import EligibilityCriteria, StudentEligibilityProfile


class SqlStudentProfileStore:
    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        cgpa = func.coalesce(StudentAcademics.ug_cgpa, 0.0)
        backlogs = func.coalesce(StudentAcademics.current_backlogs, 0)
        query = (
            self.db.query(
                User.id,
                StudentPersonal.department,
                StudentPersonal.batch_year,
                cgpa.label("cgpa"),
                backlogs.label("backlogs"),
                StudentPersonal.placement_willingness,
                User.fcm_token,
                StudentPersonal.mobile_number,
            )
            .join(StudentPersonal, StudentPersonal.user_id == User.id)
            .outerjoin(StudentAcademics, StudentAcademics.user_id == User.id)
            .filter(User.role == UserRole.STUDENT, User.is_active.is_(True))
        )
        return query, cgpa, backlogs

    def query_eligible_pool(self, criteria: EligibilityCriteria) -> List[StudentEligibilityProfile]:
        """Active students matching the criteria, filtered in SQL."""
        query, cgpa, backlogs = self._base_query()
        query = query.filter(
            cgpa >= criteria.min_cgpa,
            backlogs <= criteria.max_backlogs_allowed,
            or_(
                StudentPersonal.placement_willingness.is_(None),
                func.trim(StudentPersonal.placement_willingness) == "",
                func.lower(func.trim(StudentPersonal.placement_willingness)) == WILLINGNESS_INTERESTED.lower(),
            ),
        )
        if criteria.eligible_departments:
            query = query.filter(StudentPersonal.department.in_(sorted(criteria.eligible_departments)))
        if criteria.eligible_batches:
            query = query.filter(StudentPersonal.batch_year.in_(sorted(criteria.eligible_batches)))
        return [_to_profile(row) for row in query.all()]

    def get_profile(self, student_id: int) -> Optional[StudentEligibilityProfile]:
        query, _, _ = self._base_query()
        row = query.filter(User.id == student_id).first()
        return _to_profile(row) if row else None


def _to_profile(row) -> StudentEligibilityProfile:
    return StudentEligibilityProfile(
        student_id=row[0],
        department=row[1],
        batch_year=row[2],
        cgpa=float(row[3] or 0.0),
        backlogs=int(row[4] or 0),
        placement_willingness=row[5],
        fcm_token=row[6],
        mobile_number=row[7],
    )
