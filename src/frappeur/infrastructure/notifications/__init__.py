"""Outbound notifications."""

from frappeur.infrastructure.notifications.webhook_notifier import (
    DeliveryResult,
    WebhookNotifier,
)

__all__ = ["DeliveryResult", "WebhookNotifier"]
