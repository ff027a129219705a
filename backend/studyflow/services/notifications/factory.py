"""Notification service factory."""
from __future__ import annotations

from functools import lru_cache

from studyflow.core.config import settings
from studyflow.services.notifications.base import NotificationService
from studyflow.services.notifications.noop import NoopNotificationService


@lru_cache
def get_notification_service() -> NotificationService:
    provider = settings.notifications_provider.lower()
    if provider == "noop":
        return NoopNotificationService()
    # Only the noop provider ships today
    return NoopNotificationService()
