"""Notification adapters."""

from src.providers.notification.webhook_notification_provider import (
    WebhookNotificationProvider,
)

__all__ = ["WebhookNotificationProvider"]
