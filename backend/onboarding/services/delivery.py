"""Outbound channels that carry notification records to recipients.

Retries and the actual e-mail/push fan-out belong to whatever sits behind the
channel; the engine only hands over the record.
"""

import logging
from functools import lru_cache
from typing import Protocol

import httpx

from onboarding.core.config import settings
from onboarding.models import Notification

logger = logging.getLogger(__name__)


class DeliveryChannel(Protocol):
    def deliver(self, notification: Notification) -> None: ...


class LogDeliveryChannel:
    """Used when no webhook is configured."""

    def deliver(self, notification: Notification) -> None:
        logger.info(
            "Notification %s for %s: %s",
            notification.id,
            notification.recipient_id,
            notification.title,
        )


class WebhookDeliveryChannel:
    def __init__(self, url: str, timeout: float) -> None:
        self.url = url
        self.timeout = timeout

    def deliver(self, notification: Notification) -> None:
        payload = {
            "id": str(notification.id),
            "recipient_id": str(notification.recipient_id),
            "title": notification.title,
            "message": notification.message,
            "severity": notification.severity,
            "link": notification.link,
            "created_at": (
                notification.created_at.isoformat() if notification.created_at else None
            ),
        }
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(self.url, json=payload)
            response.raise_for_status()


@lru_cache
def get_delivery_channel() -> DeliveryChannel:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookDeliveryChannel(
            str(settings.NOTIFICATION_WEBHOOK_URL),
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    return LogDeliveryChannel()
