"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging
from uuid import UUID

from studyflow.api.schemas.notifications import NotificationItem
from studyflow.services.notifications.base import NotificationResult, NotificationService


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    def notify_session_reminder(
        self,
        *,
        user_id: UUID,
        item: NotificationItem,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info(
            "Reminder queued (noop) user=%s reminder=%s severity=%s due=%s",
            user_id,
            item.id,
            item.severity,
            item.due_date,
        )
        return NotificationResult(status="noop", reason="notification provider is noop")
