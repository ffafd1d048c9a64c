"""
Push notification client (Firebase Cloud Messaging via the Admin SDK).

One call delivers to at most PUSH_BATCH_LIMIT device tokens. FCM answers
with per-token results; we only keep the success/failure counts.
"""
import logging
import os
import threading
from typing import Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions

from app.config import settings
from app.services.errors import ChannelConfigError, DispatchError

logger = logging.getLogger(__name__)

# Hard provider limit on tokens per multicast request
PUSH_BATCH_LIMIT = 500

FIREBASE_APP_NAME = "placement-push"

# Throttling, server-side and network failures; everything else is a rejected request
RETRYABLE_ERRORS = (
    firebase_exceptions.UnavailableError,
    firebase_exceptions.InternalError,
    firebase_exceptions.DeadlineExceededError,
    firebase_exceptions.ResourceExhaustedError,
    firebase_exceptions.UnknownError,
)

_app_lock = threading.Lock()


def _get_firebase_app(credentials_file: str, timeout: float):
    """Initialize the named Firebase app once per process and reuse it."""
    with _app_lock:
        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            pass
        try:
            cred = credentials.Certificate(credentials_file)
        except (IOError, ValueError) as e:
            raise ChannelConfigError(f"Invalid Firebase credentials file {credentials_file}: {e}")
        return firebase_admin.initialize_app(
            cred, options={"httpTimeout": timeout}, name=FIREBASE_APP_NAME,
        )


class PushGateway:
    def __init__(self, app):
        self.app = app

    @classmethod
    def from_settings(cls) -> "PushGateway":
        """Build the configured gateway; raises ChannelConfigError if push is unusable."""
        if not settings.push_enabled:
            raise ChannelConfigError("Push notifications disabled")
        if not settings.push_credentials_file:
            raise ChannelConfigError("Firebase credentials file not configured")
        if not os.path.isfile(settings.push_credentials_file):
            raise ChannelConfigError(f"Firebase credentials file not found: {settings.push_credentials_file}")
        return cls(_get_firebase_app(settings.push_credentials_file, settings.gateway_timeout_seconds))

    def send_multicast(
        self,
        tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> int:
        """
        Send one notification to up to PUSH_BATCH_LIMIT devices.
        Returns the number of devices FCM accepted.
        Raises DispatchError when the whole request fails.
        """
        if not tokens:
            return 0
        if len(tokens) > PUSH_BATCH_LIMIT:
            raise DispatchError(f"batch of {len(tokens)} exceeds limit of {PUSH_BATCH_LIMIT}")

        message = messaging.MulticastMessage(
            tokens=list(tokens),
            notification=messaging.Notification(title=title, body=body),
            data={k: str(v) for k, v in (data or {}).items()},
        )

        try:
            response = messaging.send_each_for_multicast(message, app=self.app)
        except firebase_exceptions.FirebaseError as e:
            http_response = getattr(e, "http_response", None)
            raise DispatchError(
                f"FCM error {e.code}: {e}",
                retryable=isinstance(e, RETRYABLE_ERRORS),
                status_code=getattr(http_response, "status_code", None),
            )
        except ValueError as e:
            raise DispatchError(f"invalid push message: {e}")

        if response.failure_count:
            logger.warning(
                "Push multicast: %d of %d tokens rejected", response.failure_count, len(tokens),
            )
        return response.success_count
