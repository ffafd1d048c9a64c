"""
Turns eligible students into per-channel recipient lists.

The two lists are independent: a student can have a push token, a phone
number, both, or neither. Students without the channel's identifier are
reported as skipped, not failed.
"""
import logging
from typing import Iterable, List, Tuple

from app.integrations.whatsapp import normalize_phone
from app.services.dispatch import Channel, DispatchOutcome, NotificationTarget
from app.services.eligibility import StudentEligibilityProfile

logger = logging.getLogger(__name__)

# Values the CSV import and the profile form use for "no number on file"
PHONE_PLACEHOLDERS = {"NA", "N/A", "NONE", "NULL", "NIL", "-", "0"}


def _has_phone(number) -> bool:
    if not number:
        return False
    cleaned = number.strip()
    return bool(cleaned) and cleaned.upper() not in PHONE_PLACEHOLDERS


def resolve_push_targets(
    students: Iterable[StudentEligibilityProfile],
) -> Tuple[List[NotificationTarget], List[DispatchOutcome]]:
    targets = []
    skipped = []
    seen = set()
    for student in students:
        token = (student.fcm_token or "").strip()
        if not token:
            skipped.append(DispatchOutcome.skipped(
                Channel.PUSH, "no_push_token", context=f"student={student.student_id}",
            ))
            continue
        if token in seen:
            continue
        seen.add(token)
        targets.append(NotificationTarget(Channel.PUSH, token, student.student_id))
    return targets, skipped


def resolve_whatsapp_targets(
    students: Iterable[StudentEligibilityProfile],
) -> Tuple[List[NotificationTarget], List[DispatchOutcome]]:
    targets = []
    skipped = []
    seen = set()
    for student in students:
        if not _has_phone(student.mobile_number):
            skipped.append(DispatchOutcome.skipped(
                Channel.WHATSAPP, "no_phone_number", context=f"student={student.student_id}",
            ))
            continue
        number = normalize_phone(student.mobile_number)
        if number in seen:
            continue
        seen.add(number)
        targets.append(NotificationTarget(Channel.WHATSAPP, number, student.student_id))
    return targets, skipped
