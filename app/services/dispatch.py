"""Value types shared by the recipient resolver and the fan-out coordinator."""
import enum
from dataclasses import dataclass
from typing import Iterable, Optional


class Channel(str, enum.Enum):
    PUSH = "push"
    WHATSAPP = "whatsapp"


class OutcomeStatus(str, enum.Enum):
    DELIVERED = "delivered"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class NotificationTarget:
    channel: Channel
    address: str
    student_id: int


@dataclass
class DispatchOutcome:
    """Result of one push batch or one WhatsApp recipient. count = recipients covered."""
    channel: Channel
    status: OutcomeStatus
    count: int = 1
    reason: Optional[str] = None
    context: Optional[str] = None

    @classmethod
    def delivered(cls, channel: Channel, count: int = 1, context: Optional[str] = None):
        return cls(channel, OutcomeStatus.DELIVERED, count=count, context=context)

    @classmethod
    def failed(cls, channel: Channel, reason: str, count: int = 1, context: Optional[str] = None):
        return cls(channel, OutcomeStatus.FAILED, count=count, reason=reason, context=context)

    @classmethod
    def skipped(cls, channel: Channel, reason: str, count: int = 1, context: Optional[str] = None):
        return cls(channel, OutcomeStatus.SKIPPED, count=count, reason=reason, context=context)


@dataclass
class ChannelSummary:
    channel: Channel
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    channel_skipped: bool = False

    @property
    def attempted(self) -> int:
        return self.delivered + self.failed

    @classmethod
    def from_outcomes(cls, channel: Channel, outcomes: Iterable[DispatchOutcome]) -> "ChannelSummary":
        summary = cls(channel)
        for outcome in outcomes:
            if outcome.status == OutcomeStatus.DELIVERED:
                summary.delivered += outcome.count
            elif outcome.status == OutcomeStatus.FAILED:
                summary.failed += outcome.count
            else:
                summary.skipped += outcome.count
        return summary


def mask(identifier: Optional[str], visible: int = 4) -> str:
    """Hide all but the last few characters of a token or phone number for logging."""
    if not identifier:
        return "<empty>"
    if len(identifier) <= visible:
        return "*" * len(identifier)
    return "..." + identifier[-visible:]
