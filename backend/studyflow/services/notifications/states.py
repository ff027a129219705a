"""Per-reminder state kept between requests and job runs."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List
from uuid import UUID

from sqlalchemy.orm import Session

from studyflow.api.schemas.notifications import NOTIFICATION_REASONS, NotificationState
from studyflow.db.models.notification_state import NotificationStateRecord
from studyflow.services.user_service import get_or_create_user


def _to_state(row: NotificationStateRecord) -> NotificationState:
    return NotificationState(
        id=row.id,
        dismissed_at=row.dismissed_at,
        snoozed_until=row.snoozed_until,
        dispatched_at=row.dispatched_at,
    )


def parse_notification_id(notification_id: str) -> tuple[str, str]:
    """Split ``<session id>:<reason>``; session ids may themselves contain colons."""
    session_id, sep, reason = notification_id.rpartition(":")
    if not sep or not session_id or reason not in NOTIFICATION_REASONS:
        raise ValueError(f"Invalid notification id: {notification_id}")
    return session_id, reason


def load_states(db: Session, user_id: UUID) -> List[NotificationState]:
    rows = db.query(NotificationStateRecord).filter(NotificationStateRecord.user_id == user_id).all()
    return [_to_state(row) for row in rows]


def _get_or_create_state(db: Session, user_id: UUID, notification_id: str) -> NotificationStateRecord:
    session_id, _ = parse_notification_id(notification_id)
    get_or_create_user(db, user_id)
    row = db.get(NotificationStateRecord, (notification_id, user_id))
    if row is None:
        row = NotificationStateRecord(id=notification_id, user_id=user_id, session_id=session_id)
        db.add(row)
    return row


def dismiss(db: Session, user_id: UUID, notification_id: str, now: datetime | None = None) -> NotificationState:
    row = _get_or_create_state(db, user_id, notification_id)
    row.dismissed_at = now or datetime.now(timezone.utc)
    db.commit()
    return _to_state(row)


def snooze(
    db: Session,
    user_id: UUID,
    notification_id: str,
    hours: float,
    now: datetime | None = None,
) -> NotificationState:
    row = _get_or_create_state(db, user_id, notification_id)
    row.snoozed_until = (now or datetime.now(timezone.utc)) + timedelta(hours=hours)
    db.commit()
    return _to_state(row)


def mark_dispatched(
    db: Session,
    user_id: UUID,
    notification_ids: Iterable[str],
    now: datetime | None = None,
) -> None:
    """Record that reminders went out so later job runs do not resend them."""
    sent_at = now or datetime.now(timezone.utc)
    for notification_id in notification_ids:
        row = _get_or_create_state(db, user_id, notification_id)
        row.dispatched_at = sent_at
    db.commit()


def clear_dispatched(db: Session, user_id: UUID, session_ids: Iterable[str]) -> None:
    """Forget sent reminders for sessions that moved; the caller commits."""
    ids = list(session_ids)
    if not ids:
        return
    db.query(NotificationStateRecord).filter(
        NotificationStateRecord.user_id == user_id,
        NotificationStateRecord.session_id.in_(ids),
    ).update({NotificationStateRecord.dispatched_at: None}, synchronize_session=False)
