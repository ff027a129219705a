"""Reminder dispatch through the configured notification provider."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Iterable
from uuid import UUID

from studyflow.api.schemas.notifications import NotificationItem
from studyflow.core.config import settings
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services.notifications.base import NotificationResult
from studyflow.services.notifications.factory import get_notification_service


logger = logging.getLogger(__name__)

DISPATCH_SEVERITIES = ("urgent", "warning")


def dispatch_session_reminders(
    user_id: UUID,
    items: Iterable[NotificationItem],
    request_id: str | None = None,
) -> list[NotificationResult]:
    """Send urgent and warning reminders; info reminders stay in-app only."""
    pending = [item for item in items if item.severity in DISPATCH_SEVERITIES]
    if not pending:
        return []

    if not settings.notifications_enabled:
        log_metric("notifications.skipped", len(pending), metadata={"reason": "notifications disabled"})
        return [NotificationResult(status="skipped", reason="notifications disabled") for _ in pending]

    service = get_notification_service()
    results: list[NotificationResult] = []
    start = perf_counter()
    with trace(
        "notifications.session_reminders",
        metadata={"provider": settings.notifications_provider, "count": len(pending)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        for item in pending:
            result = service.notify_session_reminder(user_id=user_id, item=item, request_id=request_id)
            logger.debug("Reminder %s dispatched: %s", item.id, result.status)
            results.append(result)
    duration_ms = (perf_counter() - start) * 1000
    log_metric("notifications.sent", len(results), metadata={"provider": settings.notifications_provider})
    log_metric("notifications.duration_ms", duration_ms, metadata={"provider": settings.notifications_provider})
    return results
