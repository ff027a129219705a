"""Risk labelling for placed sessions."""
from __future__ import annotations

from datetime import date
from typing import Optional

from studyflow.api.schemas.planner import PlanWarning, RiskLevel

WARNING_WINDOW_DAYS = 1


def classify_risk(placed_on: Optional[date], due_date: date) -> RiskLevel:
    """Label a placement by how close it lands to its due date."""
    if placed_on is None or placed_on > due_date:
        return "at-risk"
    if (due_date - placed_on).days <= WARNING_WINDOW_DAYS:
        return "warning"
    return "on-track"


def risk_warning(risk: RiskLevel, subtask_title: str, subtask_id: str | None = None) -> Optional[PlanWarning]:
    """Return the plan warning that accompanies a non on-track placement."""
    if risk == "on-track":
        return None
    if risk == "warning":
        return PlanWarning(
            type="deadline",
            message=f'"{subtask_title}" is scheduled within a day of its due date.',
            detail="Consider starting earlier to leave review time.",
            subtask_id=subtask_id,
        )
    return PlanWarning(
        type="capacity",
        message=f'"{subtask_title}" is scheduled after its due date.',
        detail="Increase daily capacity or extend availability to avoid lateness.",
        subtask_id=subtask_id,
    )
