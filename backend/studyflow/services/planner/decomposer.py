"""Split milestone estimates into session-sized subtasks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from studyflow.api.schemas.planner import Assessment, Milestone, PlannerPreferences
from studyflow.services.planner.timeutils import hours_to_minutes

DEFAULT_ESTIMATE_HOURS = 2.0
MIN_ESTIMATE_HOURS = 1.0
DEFAULT_ASSESSMENT_WEIGHT = 10.0
CHUNK_BONUS_CEILING = 50
CHUNK_BONUS_STEP = 5

NOTE_HINTS = (
    (("research", "review"), "Gather sources and capture notes in reference doc."),
    (("draft",), "Focus on producing a rough draft; ignore polish for now."),
    (("edit", "revise"), "Work through feedback and tighten structure."),
    (("plan", "outline"), "Define sections, deliverables, and success criteria."),
)


@dataclass
class Subtask:
    """One session-sized chunk of a milestone, rebuilt on every planning run."""

    id: str
    assessment_title: str
    assessment_due_date: date
    milestone_title: str
    subtask_title: str
    duration_minutes: int
    order: int
    due_date: date
    weight_score: float
    notes: Optional[str] = None
    rolled_from_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def milestone_key(self) -> tuple[str, str]:
        return (self.assessment_title, self.milestone_title)


def split_minutes(total_minutes: int, prefs: PlannerPreferences) -> List[int]:
    """Chunk ``total_minutes`` into session lengths within the preference bounds.

    A trailing remainder shorter than half a minimum session is folded into
    the last chunk instead of becoming its own session.
    """
    min_minutes = prefs.min_session_minutes
    max_minutes = prefs.max_session_minutes
    remaining = max(total_minutes, min_minutes)
    parts: List[int] = []
    while remaining > 0:
        piece = max(min_minutes, min(max_minutes, remaining))
        parts.append(piece)
        remaining -= piece
        if remaining < min_minutes / 2:
            parts[-1] += remaining
            break
    return parts


def weight_score_for(assessment: Assessment | None, chunk_count: int) -> float:
    weight = assessment.weight if assessment and assessment.weight is not None else DEFAULT_ASSESSMENT_WEIGHT
    bonus = max(0, CHUNK_BONUS_CEILING - min(CHUNK_BONUS_CEILING, chunk_count * CHUNK_BONUS_STEP))
    return float(weight) + bonus


def _notes_for(title: str) -> Optional[str]:
    lowered = title.lower()
    for keywords, hint in NOTE_HINTS:
        if any(keyword in lowered for keyword in keywords):
            return hint
    return None


def subtask_id(assessment_title: str, milestone_title: str, index: int) -> str:
    """Stable subtask id; dashes inside titles are escaped so distinct titles never collide."""

    def escape(part: str) -> str:
        return part.replace("%", "%25").replace("-", "%2D")

    return f"{escape(assessment_title)}-{escape(milestone_title)}-{index}"


def create_subtasks(
    milestone: Milestone,
    assessment: Assessment | None,
    prefs: PlannerPreferences,
    fallback_due: date,
) -> List[Subtask]:
    """Decompose one milestone into ordered subtasks."""
    estimate = milestone.estimate_hours if milestone.estimate_hours is not None else DEFAULT_ESTIMATE_HOURS
    total_minutes = hours_to_minutes(max(estimate, MIN_ESTIMATE_HOURS))
    segments = split_minutes(total_minutes, prefs)

    due_date = milestone.target_date or (assessment.due_date if assessment else None) or fallback_due
    assessment_due = milestone.assessment_due_date or (assessment.due_date if assessment else None) or due_date
    weight_score = weight_score_for(assessment, len(segments))
    notes = _notes_for(milestone.title)

    subtasks: List[Subtask] = []
    for index, minutes in enumerate(segments):
        title = milestone.title if len(segments) == 1 else f"{milestone.title} – Session {index + 1}"
        subtasks.append(
            Subtask(
                id=subtask_id(milestone.assessment_title, milestone.title, index),
                assessment_title=milestone.assessment_title,
                assessment_due_date=assessment_due,
                milestone_title=milestone.title,
                subtask_title=title,
                duration_minutes=minutes,
                order=index,
                due_date=due_date,
                weight_score=weight_score,
                notes=notes,
            )
        )
    return subtasks
