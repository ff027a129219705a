"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from studyflow.api.schemas.notifications import NotificationItem


@dataclass
class NotificationResult:
    status: str
    reason: str


class NotificationService:
    """Base interface for reminder delivery providers."""

    def notify_session_reminder(
        self,
        *,
        user_id: UUID,
        item: NotificationItem,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError
