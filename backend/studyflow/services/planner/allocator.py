"""Greedy session allocator: places subtasks onto free day slots."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from studyflow.api.schemas.planner import (
    BusyBlock,
    DaySummary,
    PlannedSession,
    PlannerPreferences,
    PlanResult,
    PlanWarning,
    RiskLevel,
)
from studyflow.services.planner.availability import DayAvailability, Slot, build_availability
from studyflow.services.planner.decomposer import Subtask
from studyflow.services.planner.preferences import with_defaults
from studyflow.services.planner.risk import classify_risk, risk_warning
from studyflow.services.planner.timeutils import hours_to_minutes, minutes_to_hours, minutes_to_time, to_local_naive

logger = logging.getLogger(__name__)

HORIZON_PADDING_DAYS = 7
PLACEHOLDER_START = time(hour=9)
PLACEHOLDER_END = time(hour=10)

IdFactory = Callable[[str], str]


def random_id(seed: str) -> str:
    return str(uuid4())


@dataclass(frozen=True)
class ScoringWeights:
    """Empirical day-scoring weights; lower scores win."""

    utilisation: float = 10.0
    assessment_load: float = 4.0
    overdue_multiplier: float = 2.0
    priority: float = 0.01


@dataclass
class PlanOptions:
    start_date: Optional[date] = None
    busy_blocks: Sequence[BusyBlock] = ()
    version: Optional[int] = None
    preserve_ids: bool = False
    now: Optional[datetime] = None
    id_factory: IdFactory = random_id
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    timezone: Optional[tzinfo] = None
    # Sessions already on the calendar: they occupy their slot plus a focus
    # break and count toward each day's cap.
    booked: Sequence[PlannedSession] = ()


@dataclass
class _DayState:
    availability: DayAvailability
    worked_minutes: int = 0
    sessions: List[PlannedSession] = field(default_factory=list)
    assessment_load: Dict[str, int] = field(default_factory=dict)

    @property
    def day(self) -> date:
        return self.availability.day

    @property
    def capacity(self) -> int:
        return self.availability.capacity_minutes

    @property
    def slots(self) -> List[Slot]:
        return self.availability.slots

    @property
    def utilisation(self) -> float:
        booked = self.availability.booked_minutes
        if self.capacity <= 0:
            return float("inf")
        return (booked + self.worked_minutes) / (booked + self.capacity)


@dataclass
class _BookedTime:
    blocks: List[BusyBlock] = field(default_factory=list)
    minutes: Dict[date, int] = field(default_factory=dict)
    load: Dict[date, Dict[str, int]] = field(default_factory=dict)


def collect_booked_time(sessions: Sequence[PlannedSession], focus_gap: int) -> _BookedTime:
    """Turn booked sessions into busy time padded by the focus break, per-day minutes and load."""
    booked = _BookedTime()
    pad = timedelta(minutes=focus_gap)
    for session in sessions:
        day = session.scheduled_day
        booked.blocks.append(
            BusyBlock(
                id=f"session:{session.id}",
                title=session.subtask_title,
                start=datetime.combine(day, session.start_time) - pad,
                end=datetime.combine(day, session.end_time) + pad,
            )
        )
        booked.minutes[day] = booked.minutes.get(day, 0) + hours_to_minutes(session.duration_hours)
        day_load = booked.load.setdefault(day, {})
        day_load[session.assessment_title] = day_load.get(session.assessment_title, 0) + 1
    return booked


def resolve_clock(options: PlanOptions) -> Tuple[datetime, int]:
    """Return the run timestamp and version for a planning run."""
    now = options.now or datetime.now(options.timezone or timezone.utc)
    version = options.version if options.version is not None else int(now.timestamp() * 1000)
    return now, version


def find_slot(slots: Sequence[Slot], duration: int) -> Optional[int]:
    """Index of the first slot long enough for ``duration`` minutes."""
    for index, slot in enumerate(slots):
        if slot.minutes >= duration:
            return index
    return None


def score_day(
    state: _DayState,
    subtask: Subtask,
    weights: ScoringWeights,
) -> float:
    days_until_due = (subtask.due_date - state.day).days
    load = state.assessment_load.get(subtask.assessment_title, 0)
    proximity = days_until_due if days_until_due >= 0 else abs(days_until_due) * weights.overdue_multiplier
    return (
        state.utilisation * weights.utilisation
        + load * weights.assessment_load
        + proximity
        - subtask.weight_score * weights.priority
    )


def schedule_subtasks(
    subtasks: Sequence[Subtask],
    preferences: PlannerPreferences | None,
    options: PlanOptions | None = None,
) -> PlanResult:
    """Place every subtask on the best-scoring day, or report it as unplaced."""
    prefs = with_defaults(preferences)
    options = options or PlanOptions()
    now, version = resolve_clock(options)
    start = options.start_date or to_local_naive(now, options.timezone).date()

    if not subtasks:
        return PlanResult(version=version)

    ordered = sorted(subtasks, key=lambda sub: (sub.due_date, -sub.weight_score, sub.order))
    latest_due = max(max(sub.due_date for sub in ordered), start)
    end = latest_due + timedelta(days=HORIZON_PADDING_DAYS)
    focus_gap = prefs.focus_block_minutes
    booked = collect_booked_time(options.booked, focus_gap)
    days = [
        _DayState(availability, assessment_load=dict(booked.load.get(availability.day, {})))
        for availability in build_availability(
            [*options.busy_blocks, *booked.blocks],
            start,
            end,
            prefs,
            options.timezone,
            booked.minutes,
        )
    ]

    warnings: List[PlanWarning] = []
    sessions: List[PlannedSession] = []
    unplaced: List[PlannedSession] = []
    last_by_milestone: Dict[Tuple[str, str], str] = {}

    def session_id_for(sub: Subtask) -> str:
        return sub.id if options.preserve_ids else options.id_factory(sub.id)

    def build_session(
        sub: Subtask,
        session_id: str,
        day: date,
        start_time: time,
        end_time: time,
        risk: RiskLevel,
    ) -> PlannedSession:
        blocked_by = last_by_milestone.get(sub.milestone_key) if sub.order > 0 else None
        return PlannedSession(
            id=session_id,
            assessment_title=sub.assessment_title,
            assessment_due_date=sub.assessment_due_date,
            milestone_title=sub.milestone_title,
            subtask_title=sub.subtask_title,
            scheduled_day=day,
            start_time=start_time,
            end_time=end_time,
            duration_hours=minutes_to_hours(sub.duration_minutes),
            status="planned",
            notes=sub.notes,
            risk_level=risk,
            version=version,
            created_at=sub.created_at or now,
            updated_at=now,
            blocked_by=blocked_by,
            rolled_from_date=sub.rolled_from_date,
        )

    def mark_unplaced(sub: Subtask, warning: PlanWarning) -> None:
        warnings.append(warning)
        session_id = session_id_for(sub)
        placeholder = build_session(sub, session_id, sub.due_date, PLACEHOLDER_START, PLACEHOLDER_END, "at-risk")
        unplaced.append(placeholder)
        last_by_milestone[sub.milestone_key] = session_id
        logger.info("Unable to place subtask %s (%s)", sub.id, warning.type)

    for sub in ordered:
        duration = sub.duration_minutes
        if duration <= 0:
            continue

        primary: Optional[Tuple[float, _DayState]] = None
        fallback: Optional[Tuple[float, _DayState]] = None
        fragmented_by_busy = False

        for state in days:
            if state.capacity <= 0:
                continue
            if state.worked_minutes + duration > state.capacity:
                continue
            if find_slot(state.slots, duration) is None:
                if state.availability.busy:
                    fragmented_by_busy = True
                continue

            score = score_day(state, sub, options.weights)
            if state.day <= sub.due_date:
                if primary is None or score < primary[0]:
                    primary = (score, state)
            elif fallback is None or score < fallback[0]:
                fallback = (score, state)

        chosen = primary or fallback
        if chosen is None:
            if fragmented_by_busy:
                warning = PlanWarning(
                    type="conflict",
                    message=f'Busy times prevented scheduling "{sub.subtask_title}" before {sub.due_date.isoformat()}.',
                    detail="Adjust busy calendar entries or expand availability to free up space.",
                    subtask_id=sub.id,
                )
            else:
                warning = PlanWarning(
                    type="capacity",
                    message=f'Unable to schedule "{sub.subtask_title}" before {sub.due_date.isoformat()}.',
                    detail="Increase daily capacity, allow weekends, or reduce session duration.",
                    subtask_id=sub.id,
                )
            mark_unplaced(sub, warning)
            continue

        target = chosen[1]
        slot_index = find_slot(target.slots, duration)
        if slot_index is None:
            mark_unplaced(
                sub,
                PlanWarning(
                    type="conflict",
                    message=f'Busy times prevented scheduling "{sub.subtask_title}" on {target.day.isoformat()}.',
                    detail="Adjust busy calendar entries or expand availability to free up space.",
                    subtask_id=sub.id,
                ),
            )
            continue

        slot = target.slots[slot_index]
        start_minute = slot.start
        end_minute = start_minute + duration
        risk = classify_risk(target.day, sub.due_date)
        session_id = session_id_for(sub)
        session = build_session(
            sub,
            session_id,
            target.day,
            minutes_to_time(start_minute),
            minutes_to_time(end_minute),
            risk,
        )

        target.worked_minutes += duration
        target.assessment_load[sub.assessment_title] = target.assessment_load.get(sub.assessment_title, 0) + 1
        gap = focus_gap if target.worked_minutes < target.capacity else 0
        next_start = end_minute + gap
        if next_start >= slot.end:
            del target.slots[slot_index]
        else:
            target.slots[slot_index] = Slot(next_start, slot.end)

        extra = risk_warning(risk, sub.subtask_title, sub.id)
        if extra:
            warnings.append(extra)

        target.sessions.append(session)
        sessions.append(session)
        last_by_milestone[sub.milestone_key] = session_id

    logger.debug(
        "Planned %s sessions over %s days (%s unplaced, %s warnings)",
        len(sessions),
        len(days),
        len(unplaced),
        len(warnings),
    )
    return PlanResult(
        sessions=sessions,
        days=[
            DaySummary(
                day=state.day,
                is_weekend=state.availability.is_weekend,
                capacity=minutes_to_hours(state.capacity),
                total_hours=minutes_to_hours(state.worked_minutes),
                sessions=state.sessions,
            )
            for state in days
        ],
        warnings=warnings,
        unplaced=unplaced,
        version=version,
    )
