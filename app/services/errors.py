"""
Error taxonomy for drives, applications and drive notifications.

ValidationError, NotFoundError and the two application errors are mapped to
HTTP responses by the routers; the rest stay inside the fan-out and end up
in the logs.
"""
from typing import Optional


class PlacementError(Exception):
    """Base class for domain errors"""


class ValidationError(PlacementError):
    """Malformed eligibility criteria or drive input"""


class NotFoundError(PlacementError):
    """The drive (or application) does not exist, or was deleted before fan-out ran"""


class NotEligibleError(PlacementError):
    """The student does not meet the drive's eligibility criteria"""


class ApplicationConflictError(PlacementError):
    """The drive is not accepting applications, or an admin has already decided this one"""


class InvalidTransitionError(PlacementError):
    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot move drive from {from_status} to {to_status}")


class ChannelConfigError(PlacementError):
    """A notification channel is disabled or missing credentials"""


class DispatchError(PlacementError):
    """
    A single send (one push batch or one WhatsApp recipient) failed.

    retryable is True for transport errors, timeouts, 429 and 5xx; a 4xx
    means the provider rejected the request itself and retrying won't help.
    """

    def __init__(self, reason: str, retryable: bool = False, status_code: Optional[int] = None):
        self.reason = reason
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(reason)
