"""Batch job runners for catch-up reschedules and reminder dispatch."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.observability.metrics import log_metric
from studyflow.services import plan_store
from studyflow.services.notifications.hooks import DISPATCH_SEVERITIES, dispatch_session_reminders
from studyflow.services.notifications.reminders import generate_notifications
from studyflow.services.notifications.states import load_states, mark_dispatched
from studyflow.services.planner_service import run_catch_up
from studyflow.services.user_service import user_timezone


logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    sessions_moved: int = 0
    reminders_sent: int = 0
    failures: int = 0


def _planned_user_ids(db: Session) -> List[UUID]:
    rows = db.query(PlanSessionRecord.user_id).distinct().all()
    return [row[0] for row in rows]


def _normalize_user_ids(user_ids: Optional[Iterable[UUID]], db: Session) -> List[UUID]:
    if user_ids is None:
        return _planned_user_ids(db)
    return list(dict.fromkeys(user_ids))


def run_catch_up_for_user(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> int:
    outcome = run_catch_up(db, user_id, now=now)
    return len(outcome.moved)


def run_catch_up_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    now: Optional[datetime] = None,
) -> JobRunResult:
    ids = _normalize_user_ids(user_ids, db)
    result = JobRunResult(users_processed=0)
    for uid in ids:
        try:
            moved = run_catch_up_for_user(db, uid, now=now)
        except Exception:  # pragma: no cover
            db.rollback()
            logger.exception("Catch-up job failed for user %s", uid)
            result.failures += 1
            continue
        result.users_processed += 1
        result.sessions_moved += moved
    log_metric("jobs.catch_up.sessions_moved", result.sessions_moved, metadata={"users": result.users_processed})
    return result


def run_reminders_for_user(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> int:
    states = load_states(db, user_id)
    already_sent = {state.id for state in states if state.dispatched_at is not None}
    items = generate_notifications(
        plan_store.load_sessions(db, user_id),
        states,
        now=now,
        tz=user_timezone(db, user_id),
    )
    pending = [item for item in items if item.id not in already_sent and item.severity in DISPATCH_SEVERITIES]
    results = dispatch_session_reminders(user_id, pending)
    sent = [item.id for item, outcome in zip(pending, results) if outcome.status != "skipped"]
    if sent:
        mark_dispatched(db, user_id, sent, now=now)
    return len(sent)


def run_reminders_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    now: Optional[datetime] = None,
) -> JobRunResult:
    ids = _normalize_user_ids(user_ids, db)
    result = JobRunResult(users_processed=0)
    for uid in ids:
        try:
            sent = run_reminders_for_user(db, uid, now=now)
        except Exception:  # pragma: no cover
            db.rollback()
            logger.exception("Reminder job failed for user %s", uid)
            result.failures += 1
            continue
        result.users_processed += 1
        result.reminders_sent += sent
    return result
