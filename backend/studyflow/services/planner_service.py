"""Glue between stored planner inputs, the planning engine and plan storage."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from studyflow.api.schemas.planner import PlannedSession, PlanResult, PlanWarning, SessionStatus
from studyflow.services import inputs_store, plan_store
from studyflow.services.notifications import states as notification_states
from studyflow.services.planner import PlanOptions, catch_up, merge_sessions, plan_milestones, roll_over_week
from studyflow.services.preferences_service import get_preferences
from studyflow.services.user_service import user_timezone

logger = logging.getLogger(__name__)


class EmptyPlanError(ValueError):
    """Raised when applying a plan that would place no sessions."""


@dataclass
class RescheduleOutcome:
    moved: List[PlannedSession] = field(default_factory=list)
    unplaced: List[PlannedSession] = field(default_factory=list)
    warnings: List[PlanWarning] = field(default_factory=list)
    sessions: List[PlannedSession] = field(default_factory=list)


def _options(
    db: Session,
    user_id: UUID,
    *,
    start_date: Optional[date] = None,
    now: Optional[datetime] = None,
    booked: Sequence[PlannedSession] = (),
) -> PlanOptions:
    return PlanOptions(
        start_date=start_date,
        busy_blocks=inputs_store.load_busy_blocks(db, user_id),
        now=now,
        timezone=user_timezone(db, user_id),
        booked=booked,
    )


def build_plan(
    db: Session,
    user_id: UUID,
    *,
    start_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> PlanResult:
    """Plan every stored milestone without persisting anything."""
    milestones = inputs_store.load_milestones(db, user_id)
    assessments = inputs_store.load_assessments(db, user_id)
    prefs = get_preferences(db, user_id)
    result = plan_milestones(milestones, assessments, prefs, _options(db, user_id, start_date=start_date, now=now))
    logger.info(
        "Built plan for %s milestones: %s sessions, %s unplaced",
        len(milestones),
        len(result.sessions),
        len(result.unplaced),
    )
    return result


def apply_plan(
    db: Session,
    user_id: UUID,
    *,
    start_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> PlanResult:
    """Build a fresh plan and make it the user's active plan."""
    result = build_plan(db, user_id, start_date=start_date, now=now)
    if not result.sessions:
        raise EmptyPlanError("Plan has no sessions to save")
    plan_store.replace_plan(db, user_id, result.sessions)
    return result


def run_catch_up(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> RescheduleOutcome:
    """Move overdue open sessions forward from today."""
    return _reschedule(db, user_id, catch_up, now=now)


def run_rollover(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> RescheduleOutcome:
    """Push this week's open sessions into next week."""
    return _reschedule(db, user_id, roll_over_week, now=now)


def _reschedule(
    db: Session,
    user_id: UUID,
    engine: Callable[..., PlanResult],
    *,
    now: Optional[datetime] = None,
) -> RescheduleOutcome:
    existing = plan_store.load_sessions(db, user_id)
    prefs = get_preferences(db, user_id)
    # Moved sessions all lie before the target range; every stored session is booked time.
    result = engine(existing, prefs, _options(db, user_id, now=now, booked=existing))
    if not result.sessions:
        return RescheduleOutcome(unplaced=result.unplaced, warnings=result.warnings, sessions=existing)

    previous: Dict[str, PlannedSession] = {session.id: session for session in existing}
    plan_store.upsert_sessions(db, user_id, result.sessions, commit=False)
    for session in result.sessions:
        before = previous.get(session.id)
        plan_store.record_audit(
            db,
            user_id,
            action="reschedule",
            session=session,
            before_status=before.status if before else None,
            after_status=session.status,
            details={
                "from": before.scheduled_day.isoformat() if before else None,
                "to": session.scheduled_day.isoformat(),
                "version": result.version,
            },
            created_at=session.updated_at,
        )
    notification_states.clear_dispatched(db, user_id, [session.id for session in result.sessions])
    db.commit()
    logger.info("Rescheduled %s sessions, %s left unplaced", len(result.sessions), len(result.unplaced))
    return RescheduleOutcome(
        moved=result.sessions,
        unplaced=result.unplaced,
        warnings=result.warnings,
        sessions=merge_sessions(existing, result),
    )


def set_session_status(
    db: Session,
    user_id: UUID,
    session_id: str,
    status: SessionStatus,
    *,
    note: Optional[str] = None,
) -> PlannedSession:
    return plan_store.update_session_status(db, user_id, session_id, status, note=note)
