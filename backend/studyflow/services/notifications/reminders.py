"""Derive time-sensitive session reminders."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from studyflow.api.schemas.notifications import NotificationItem, NotificationState
from studyflow.api.schemas.planner import PlannedSession, is_completed
from studyflow.services.planner.timeutils import to_local_naive

SEVERITY_ORDER = {"urgent": 0, "warning": 1, "info": 2}

# Overdue reminders are never silenced by a dismissal.
DISMISS_COOLDOWNS = {
    "heads-up": timedelta(hours=24),
    "due-soon": timedelta(hours=12),
    "due-now": timedelta(hours=6),
}


def notification_id(session_id: str, reason: str) -> str:
    return f"{session_id}:{reason}"


def _classify(diff_hours: float, session: PlannedSession) -> Optional[tuple[str, str, str, str]]:
    """Return (severity, reason, title, message) or None when nothing is due."""
    day = session.scheduled_day.isoformat()
    start = session.start_time.strftime("%H:%M")
    if diff_hours < -1:
        return (
            "urgent",
            "overdue",
            f"Overdue focus block: {session.subtask_title}",
            f"This session was scheduled on {day} and still needs attention. Re-run catch-up or mark complete.",
        )
    if diff_hours <= 0:
        return (
            "urgent",
            "due-now",
            f"Due now: {session.subtask_title}",
            f'Your planned session "{session.subtask_title}" should be underway.',
        )
    if diff_hours <= 24:
        return (
            "warning",
            "due-soon",
            f"Upcoming (24h): {session.subtask_title}",
            f"Starts {start} on {day}. Prep any resources now.",
        )
    if diff_hours <= 72:
        return (
            "info",
            "heads-up",
            f"Heads-up: {session.subtask_title}",
            f"Scheduled for {day}. Keep the slot protected.",
        )
    return None


def _stored_local(value: datetime, tz: tzinfo | None) -> datetime:
    """Local wall-clock time for a stored timestamp; naive values from the database are UTC."""
    if tz is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return to_local_naive(value, tz)


def is_suppressed(state: NotificationState | None, reason: str, now: datetime, tz: tzinfo | None = None) -> bool:
    if state is None:
        return False
    if state.snoozed_until and _stored_local(state.snoozed_until, tz) > now:
        return True
    cooldown = DISMISS_COOLDOWNS.get(reason)
    if state.dismissed_at and cooldown is not None:
        return now - _stored_local(state.dismissed_at, tz) < cooldown
    return False


def generate_notifications(
    sessions: Iterable[PlannedSession],
    states: Iterable[NotificationState],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> List[NotificationItem]:
    """Build reminders for open sessions, honouring dismiss and snooze state."""
    created_at = now or datetime.now(tz)
    local_now = to_local_naive(created_at, tz)
    state_by_id: Dict[str, NotificationState] = {state.id: state for state in states}

    items: List[NotificationItem] = []
    for session in sessions:
        if is_completed(session.status):
            continue
        diff_hours = (session.starts_at() - local_now).total_seconds() / 3600
        classified = _classify(diff_hours, session)
        if classified is None:
            continue
        severity, reason, title, message = classified
        item_id = notification_id(session.id, reason)
        if is_suppressed(state_by_id.get(item_id), reason, local_now, tz):
            continue
        items.append(
            NotificationItem(
                id=item_id,
                title=title,
                message=message,
                due_date=session.scheduled_day,
                session_id=session.id,
                severity=severity,
                reason=reason,
                created_at=created_at,
            )
        )

    return sorted(items, key=lambda item: (SEVERITY_ORDER[item.severity], item.due_date))
