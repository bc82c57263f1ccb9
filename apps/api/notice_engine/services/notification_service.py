"""Outbound notifications (claimant receipts, artist notices).

Delivery is fire-and-forget: notify() logs failures and never raises, so
a broken channel can never roll back a state transition.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from notice_engine.core.config import settings

logger = logging.getLogger(__name__)


class Notifier(ABC):
    @abstractmethod
    def send(self, event: str, recipient: str | None, payload: dict[str, Any]) -> None:
        pass


class LoggingNotifier(Notifier):
    """Default when no webhook is configured."""

    def send(self, event: str, recipient: str | None, payload: dict[str, Any]) -> None:
        logger.info(
            "Notification queued",
            extra={"event": event, "ticket_id": payload.get("ticket_id")},
        )


class WebhookNotifier(Notifier):
    """POSTs each notification to a delivery webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def send(self, event: str, recipient: str | None, payload: dict[str, Any]) -> None:
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(
                self.url,
                json={"event": event, "recipient": recipient, "payload": payload},
            )
            response.raise_for_status()


def notify(
    notifier: Notifier,
    event: str,
    recipient: str | None,
    payload: dict[str, Any],
) -> bool:
    """Send a notification; returns False (and logs) on any delivery failure."""
    try:
        notifier.send(event, recipient, payload)
        return True
    except Exception as exc:
        logger.warning(
            "Notification delivery failed: %s",
            exc,
            extra={"event": event, "ticket_id": payload.get("ticket_id")},
        )
        return False


def get_notifier() -> Notifier:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(
            settings.NOTIFICATION_WEBHOOK_URL,
            timeout=settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
        )
    return LoggingNotifier()
