"""
WhatsApp Cloud API client for template messages.

Business-initiated messages must use a pre-approved template; free-form
text is only accepted inside a 24h reply window, so drive alerts never use it.
Recipients are addressed by phone number in international format without '+'.
"""
import logging
from typing import Any, List, Optional

import httpx

from app.config import settings
from app.integrations.retry import classify_status
from app.services.errors import ChannelConfigError, DispatchError

logger = logging.getLogger(__name__)


def normalize_phone(phone: str, country_code: Optional[str] = None) -> str:
    """
    Normalize a phone number to the digits-only international form.

    Rules (after dropping spaces, dashes and brackets):
    - leading '+' → already international, strip the '+'
    - 10 digits (after stripping a trunk '0') → local number, prepend country code
    - anything else → digits without the leading zeros of a '00' international prefix

    '9876543210' → '919876543210', '+919876543210' → '919876543210'
    """
    if country_code is None:
        country_code = settings.phone_country_code
    raw = (phone or "").strip()
    digits = "".join(c for c in raw if c.isdigit())
    if raw.startswith("+"):
        return digits
    local = digits.lstrip("0")
    if len(local) == 10:
        return country_code + local
    return local


class WhatsAppGateway:
    def __init__(
        self,
        api_base: str,
        phone_number_id: str,
        access_token: str,
        timeout: float = 10.0,
    ):
        self.url = f"{api_base.rstrip('/')}/{phone_number_id}/messages"
        self.access_token = access_token
        self.timeout = timeout

    @classmethod
    def from_settings(cls):
        """Build the configured gateway; raises ChannelConfigError if WhatsApp is unusable."""
        if not settings.whatsapp_enabled:
            raise ChannelConfigError("WhatsApp disabled")
        if settings.whatsapp_dev_mode:
            from app.integrations.whatsapp_dev import DevWhatsAppGateway
            return DevWhatsAppGateway(settings.whatsapp_dev_output_dir)
        if not settings.whatsapp_phone_number_id or not settings.whatsapp_access_token:
            raise ChannelConfigError("WhatsApp phone number id or access token not configured")
        return cls(
            settings.whatsapp_api_base,
            settings.whatsapp_phone_number_id,
            settings.whatsapp_access_token,
            timeout=settings.gateway_timeout_seconds,
        )

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def send_template(
        self,
        to: str,
        template_name: str,
        language_code: str,
        components: Optional[List[Any]] = None,
        send_id: Optional[str] = None,
    ) -> None:
        """Send one template message. Raises DispatchError on any failure."""
        if not to:
            raise DispatchError("empty recipient number")

        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language_code},
                "components": components or [],
            },
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.url, headers=self._headers(), json=payload)
        except httpx.TimeoutException as e:
            raise DispatchError(f"timeout: {e}", retryable=True)
        except httpx.HTTPError as e:
            raise DispatchError(f"transport error: {e}", retryable=True)

        if resp.status_code >= 400:
            raise DispatchError(
                f"API error {resp.status_code}: {resp.text[:200]}",
                retryable=classify_status(resp.status_code),
                status_code=resp.status_code,
            )
