"""
Bounded retry with exponential backoff for provider calls.

Only DispatchError(retryable=True) is retried. Anything the provider
rejected outright (bad number, bad token format) fails on the first try.
"""
import logging
import time
from typing import Callable, TypeVar

from app.services.errors import DispatchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    max_retries: int,
    backoff_seconds: float,
    label: str = "gateway call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    attempt = 0
    while True:
        try:
            return fn()
        except DispatchError as e:
            if not e.retryable or attempt >= max_retries:
                raise
            delay = backoff_seconds * (2 ** attempt)
            attempt += 1
            logger.warning(
                "%s failed (%s), retry %d/%d in %.1fs",
                label, e.reason, attempt, max_retries, delay,
            )
            sleep(delay)


def classify_status(status_code: int) -> bool:
    """True when an HTTP error status is worth retrying."""
    return status_code == 429 or status_code >= 500
