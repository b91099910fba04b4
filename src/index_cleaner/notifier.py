from __future__ import annotations

from typing import Optional

import httpx

from .exceptions import NotificationError
from .logger import get_logger
from .outcome import NotificationPayload

log = get_logger(__name__)


class WebhookNotifier:
    """Posts a cleanup payload to a Slack-compatible incoming webhook."""

    def __init__(
        self,
        webhook_url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def close(self) -> None:
        self._client.close()

    def post(self, payload: NotificationPayload) -> None:
        """Send once; raises NotificationError on transport failure or non-2xx."""
        if not self.webhook_url:
            raise NotificationError("webhook URL is not configured")
        try:
            resp = self._client.post(self.webhook_url, json=payload.to_webhook_json())
        except httpx.HTTPError as e:
            raise NotificationError(f"webhook request failed: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise NotificationError(f"webhook returned {resp.status_code}: {resp.text}")

    def send(self, payload: NotificationPayload) -> bool:
        if not self.enabled:
            log.warning("Notification webhook not configured; skipping notification")
            return False
        try:
            self.post(payload)
        except NotificationError as e:
            log.error("Notification error: %s", e)
            return False
        return True
