"""Weekly planned-vs-completed aggregation."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from studyflow.api.schemas.planner import PlannedSession, is_completed
from studyflow.api.schemas.progress import WeeklyProgress, WeeklyStatus
from studyflow.services.planner.timeutils import week_start

ON_TRACK_RATIO = 0.85
BEHIND_RATIO = 0.55


@dataclass
class _WeekTotals:
    start: date
    planned: float = 0.0
    completed: float = 0.0


def weekly_status(planned: float, completed: float) -> WeeklyStatus:
    ratio = completed / planned if planned > 0 else 1.0
    if ratio >= ON_TRACK_RATIO:
        return "on-track"
    if ratio >= BEHIND_RATIO:
        return "behind"
    return "at-risk"


def build_weekly_summaries(sessions: Iterable[PlannedSession], now: datetime | date | None = None) -> List[WeeklyProgress]:
    """Bucket sessions into Monday-start weeks; the current week is always present."""
    if now is None:
        today = date.today()
    elif isinstance(now, datetime):
        today = now.date()
    else:
        today = now

    weeks: Dict[date, _WeekTotals] = {}
    for session in sessions:
        start = week_start(session.scheduled_day)
        totals = weeks.setdefault(start, _WeekTotals(start=start))
        totals.planned += session.duration_hours
        if is_completed(session.status):
            totals.completed += session.duration_hours

    current = week_start(today)
    weeks.setdefault(current, _WeekTotals(start=current))

    return [
        WeeklyProgress(
            week_label=totals.start.isoformat(),
            start_date=totals.start,
            end_date=totals.start + timedelta(days=6),
            planned_hours=round(totals.planned, 2),
            completed_hours=round(totals.completed, 2),
            status=weekly_status(totals.planned, totals.completed),
        )
        for totals in sorted(weeks.values(), key=lambda entry: entry.start)
    ]
