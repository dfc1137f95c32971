# tracker/integrations/email_client.py

import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from tracker.reminders.errors import NotificationError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class NullNotifier:
    """No provider configured: every send reports failure, reminders stay pending."""

    def send(self, addresses: Iterable[str], subject: str, body: str) -> bool:
        logger.warning("[email] no provider configured; %d address(es) not notified", len(list(addresses)))
        return False


class ResendNotifier:
    """
    Plain-text email through the Resend HTTP API.
    send() never raises: missing config, transport errors and non-2xx answers all return False.
    """

    def __init__(
        self,
        api_key: str,
        sender: str,
        timeout: float = 20,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self._http = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.sender)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            if self._http is not None:
                r = self._http.post(RESEND_URL, json=payload, headers=self._headers(), timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    r = client.post(RESEND_URL, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise NotificationError(f"Resend transport error: {e}") from e

        try:
            data = r.json()
        except ValueError:
            data = {"text": r.text}
        if r.status_code >= 300:
            raise NotificationError(f"Resend error {r.status_code}: {data}")
        return data

    def send(self, addresses: Iterable[str], subject: str, body: str) -> bool:
        to = sorted(set(addresses))
        if not to:
            return False
        if not self.configured:
            logger.warning("[resend] RESEND_API_KEY/EMAIL_FROM missing; skipping send to %d address(es)", len(to))
            return False

        payload = {"from": self.sender, "to": to, "subject": subject, "text": body}
        try:
            data = self._post(payload)
        except NotificationError as e:
            logger.warning("[resend] %s", e)
            return False
        logger.debug("[resend] sent id=%s to=%d", data.get("id"), len(to))
        return True


def build_notifier(settings):
    if settings.resend_api_key and settings.email_from:
        return ResendNotifier(
            settings.resend_api_key,
            settings.email_from,
            timeout=settings.email_timeout_seconds,
        )
    return NullNotifier()
