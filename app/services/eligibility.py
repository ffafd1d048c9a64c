"""
Drive eligibility: typed criteria, composable predicates and the evaluator.

A student is eligible for a drive when every clause holds:

    cgpa >= min_cgpa
    backlogs <= max_backlogs_allowed
    department in eligible_departments   (empty set = any department)
    batch_year in eligible_batches       (empty set = any batch)
    placement_willingness unset or "Interested"

Students with no academic record are evaluated as CGPA 0 / 0 backlogs,
so they pass drives that ask for no minimum CGPA.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional

from app.models.student import WILLINGNESS_INTERESTED
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_CGPA = 10.0


@dataclass(frozen=True)
class EligibilityCriteria:
    min_cgpa: float = 0.0
    max_backlogs_allowed: int = 0
    eligible_departments: FrozenSet[str] = field(default_factory=frozenset)
    eligible_batches: FrozenSet[int] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.min_cgpa is None or not 0 <= self.min_cgpa <= MAX_CGPA:
            raise ValidationError(f"min_cgpa must be between 0 and {MAX_CGPA}, got {self.min_cgpa}")
        if self.max_backlogs_allowed is None or self.max_backlogs_allowed < 0:
            raise ValidationError(
                f"max_backlogs_allowed must be >= 0, got {self.max_backlogs_allowed}"
            )
        if any(not isinstance(d, str) or not d.strip() for d in self.eligible_departments):
            raise ValidationError("eligible_departments must contain non-empty strings")
        if any(isinstance(b, bool) or not isinstance(b, int) for b in self.eligible_batches):
            raise ValidationError("eligible_batches must contain integers")

    @classmethod
    def from_values(
        cls,
        min_cgpa: Optional[float] = None,
        max_backlogs_allowed: Optional[int] = None,
        eligible_departments: Optional[Iterable[str]] = None,
        eligible_batches: Optional[Iterable[int]] = None,
    ) -> "EligibilityCriteria":
        """Build criteria from loosely-typed input (DB row, request body, task payload)."""
        return cls(
            min_cgpa=float(min_cgpa) if min_cgpa is not None else 0.0,
            max_backlogs_allowed=int(max_backlogs_allowed) if max_backlogs_allowed is not None else 0,
            eligible_departments=frozenset(eligible_departments or ()),
            eligible_batches=frozenset(eligible_batches or ()),
        )

    def to_dict(self) -> dict:
        return {
            "min_cgpa": self.min_cgpa,
            "max_backlogs_allowed": self.max_backlogs_allowed,
            "eligible_departments": sorted(self.eligible_departments),
            "eligible_batches": sorted(self.eligible_batches),
        }


@dataclass(frozen=True)
class StudentEligibilityProfile:
    """Read-only view of the student fields that eligibility and delivery need"""
    student_id: int
    department: Optional[str] = None
    batch_year: Optional[int] = None
    cgpa: float = 0.0
    backlogs: int = 0
    placement_willingness: Optional[str] = None
    fcm_token: Optional[str] = None
    mobile_number: Optional[str] = None


Predicate = Callable[[StudentEligibilityProfile], bool]


def min_cgpa_clause(min_cgpa: float) -> Predicate:
    return lambda s: (s.cgpa or 0.0) >= min_cgpa


def max_backlogs_clause(max_backlogs: int) -> Predicate:
    return lambda s: (s.backlogs or 0) <= max_backlogs


def department_clause(departments: FrozenSet[str]) -> Predicate:
    if not departments:
        return lambda s: True
    return lambda s: s.department in departments


def batch_clause(batches: FrozenSet[int]) -> Predicate:
    if not batches:
        return lambda s: True
    return lambda s: s.batch_year in batches


def willingness_clause() -> Predicate:
    def _willing(s: StudentEligibilityProfile) -> bool:
        value = (s.placement_willingness or "").strip()
        return not value or value.lower() == WILLINGNESS_INTERESTED.lower()
    return _willing


def all_of(*predicates: Predicate) -> Predicate:
    return lambda s: all(p(s) for p in predicates)


def build_predicate(criteria: EligibilityCriteria) -> Predicate:
    """Compose the conjunctive eligibility predicate for a set of criteria."""
    return all_of(
        min_cgpa_clause(criteria.min_cgpa),
        max_backlogs_clause(criteria.max_backlogs_allowed),
        department_clause(criteria.eligible_departments),
        batch_clause(criteria.eligible_batches),
        willingness_clause(),
    )


def is_eligible(student: StudentEligibilityProfile, criteria: EligibilityCriteria) -> bool:
    return build_predicate(criteria)(student)


class EligibilityEvaluator:
    """
    Resolves the eligible student set for a drive snapshot.

    One bulk read per call against the student store. The store may filter
    server-side; the predicate is applied again here so a store that can't
    (or an in-memory fake) still yields the right set.
    """

    def __init__(self, student_store):
        self.student_store = student_store

    def evaluate(self, snapshot) -> List[StudentEligibilityProfile]:
        criteria = snapshot.criteria
        predicate = build_predicate(criteria)
        pool = self.student_store.query_eligible_pool(criteria)
        eligible = [s for s in pool if predicate(s)]
        logger.info(
            "Drive %s: %d eligible out of %d candidates (criteria=%s)",
            snapshot.id, len(eligible), len(pool), criteria.to_dict(),
        )
        return eligible
