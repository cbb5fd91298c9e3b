"""Fire-and-forget webhook notifications for pipeline outcomes."""

from typing import Optional

import requests

from deploypipe.constants import NOTIFICATION_TIMEOUT_SECONDS
from deploypipe.errors import NotificationError


class Notifier:
    """Posts outcome messages to a Slack-compatible webhook.

    Delivery problems are logged and swallowed, they never fail a run.
    """

    def __init__(self, webhook_url: Optional[str], logger, requests_module=requests):
        self.webhook_url = webhook_url
        self.logger = logger
        self.requests = requests_module

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def notify(self, message: str) -> bool:
        if not self.enabled:
            return False

        try:
            self.send(message)
        except NotificationError as exc:
            self.logger.warning("Failed to send notification: %s", exc)
            return False

        self.logger.info("Notification sent")
        return True

    def send(self, message: str):
        try:
            response = self.requests.post(
                self.webhook_url,
                json={"text": message},
                timeout=NOTIFICATION_TIMEOUT_SECONDS,
            )
        except self.requests.RequestException as exc:
            raise NotificationError(f"Webhook request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise NotificationError(f"Webhook responded with HTTP {response.status_code}")
