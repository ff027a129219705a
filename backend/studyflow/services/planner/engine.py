"""Planner entry points: fresh plans, catch-up and rollover reschedules."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Sequence

from studyflow.api.schemas.planner import (
    Assessment,
    Milestone,
    PlannedSession,
    PlannerPreferences,
    PlanResult,
    PlanWarning,
    is_completed,
)
from studyflow.services.planner.allocator import PlanOptions, resolve_clock, schedule_subtasks
from studyflow.services.planner.decomposer import Subtask, create_subtasks
from studyflow.services.planner.preferences import with_defaults
from studyflow.services.planner.timeutils import hours_to_minutes, to_local_naive, week_start

logger = logging.getLogger(__name__)

RESCHEDULE_WEIGHT_SCORE = 20.0


def plan_milestones(
    milestones: Sequence[Milestone],
    assessments: Sequence[Assessment],
    preferences: PlannerPreferences | Mapping | None = None,
    options: PlanOptions | None = None,
) -> PlanResult:
    """Build a fresh plan for every milestone.

    Session ids derive from assessment, milestone and chunk index, so running
    twice with the same inputs yields the same ids.
    """
    prefs = with_defaults(preferences)
    options = replace(options or PlanOptions(), preserve_ids=True)
    now, version = resolve_clock(options)
    options = replace(options, now=now, version=version)
    fallback_due = options.start_date or to_local_naive(now, options.timezone).date()

    assessment_by_title: Dict[str, Assessment] = {assessment.title: assessment for assessment in assessments}
    notices: List[PlanWarning] = []
    subtasks: List[Subtask] = []
    for milestone in milestones:
        assessment = assessment_by_title.get(milestone.assessment_title)
        if assessment is None:
            notices.append(
                PlanWarning(
                    type="info",
                    message=f'No assessment named "{milestone.assessment_title}" for milestone "{milestone.title}".',
                    detail="Default weighting was used for this milestone.",
                )
            )
        subtasks.extend(create_subtasks(milestone, assessment, prefs, fallback_due))

    result = schedule_subtasks(subtasks, prefs, options)
    if notices:
        result.warnings = notices + result.warnings
    return result


def sessions_to_subtasks(sessions: Iterable[PlannedSession]) -> List[Subtask]:
    """Turn open sessions back into subtasks, re-targeted at the assessment due date."""
    open_sessions = sorted(
        (session for session in sessions if not is_completed(session.status)),
        key=lambda session: (session.scheduled_day, session.start_time, session.id),
    )
    order_by_milestone: Dict[tuple[str, str], int] = {}
    subtasks: List[Subtask] = []
    for session in open_sessions:
        key = (session.assessment_title, session.milestone_title)
        order = order_by_milestone.get(key, 0)
        order_by_milestone[key] = order + 1
        subtasks.append(
            Subtask(
                id=session.id,
                assessment_title=session.assessment_title,
                assessment_due_date=session.assessment_due_date,
                milestone_title=session.milestone_title,
                subtask_title=session.subtask_title,
                duration_minutes=hours_to_minutes(session.duration_hours),
                order=order,
                due_date=session.assessment_due_date,
                weight_score=RESCHEDULE_WEIGHT_SCORE,
                notes=session.notes,
                rolled_from_date=session.rolled_from_date or session.scheduled_day,
                created_at=session.created_at,
            )
        )
    return subtasks


def reschedule_sessions(
    sessions: Sequence[PlannedSession],
    preferences: PlannerPreferences | Mapping | None = None,
    options: PlanOptions | None = None,
) -> PlanResult:
    """Re-place a subset of existing sessions, keeping their ids.

    Completed sessions are never moved. Every result records where it was
    originally scheduled in ``rolled_from_date``.
    """
    options = replace(options or PlanOptions(), preserve_ids=True)
    subtasks = sessions_to_subtasks(sessions)
    logger.debug("Rescheduling %s open sessions", len(subtasks))
    return schedule_subtasks(subtasks, with_defaults(preferences), options)


def select_overdue_sessions(sessions: Iterable[PlannedSession], today: date) -> List[PlannedSession]:
    return [
        session
        for session in sessions
        if not is_completed(session.status) and session.scheduled_day < today
    ]


def select_rollover_sessions(sessions: Iterable[PlannedSession], today: date) -> List[PlannedSession]:
    start = week_start(today)
    end = start + timedelta(days=6)
    return [
        session
        for session in sessions
        if not is_completed(session.status) and start <= session.scheduled_day <= end
    ]


def catch_up(
    sessions: Sequence[PlannedSession],
    preferences: PlannerPreferences | Mapping | None = None,
    options: PlanOptions | None = None,
) -> PlanResult:
    """Move overdue open sessions onto the calendar from today onwards."""
    options = options or PlanOptions()
    now, version = resolve_clock(options)
    today = to_local_naive(now, options.timezone).date()
    overdue = select_overdue_sessions(sessions, today)
    return reschedule_sessions(
        overdue,
        preferences,
        replace(options, now=now, version=version, start_date=options.start_date or today),
    )


def roll_over_week(
    sessions: Sequence[PlannedSession],
    preferences: PlannerPreferences | Mapping | None = None,
    options: PlanOptions | None = None,
) -> PlanResult:
    """Push this week's open sessions into next week."""
    options = options or PlanOptions()
    now, version = resolve_clock(options)
    today = to_local_naive(now, options.timezone).date()
    next_monday = week_start(today) + timedelta(days=7)
    pending = select_rollover_sessions(sessions, today)
    return reschedule_sessions(
        pending,
        preferences,
        replace(options, now=now, version=version, start_date=options.start_date or next_monday),
    )


def merge_sessions(existing: Sequence[PlannedSession], result: PlanResult) -> List[PlannedSession]:
    """Replace sessions by id with their rescheduled versions.

    Sessions the reschedule could not place keep their previous slot.
    """
    moved = {session.id: session for session in result.sessions}
    return [moved.get(session.id, session) for session in existing]
