"""Study-session planner engine."""
from studyflow.services.planner.allocator import PlanOptions, ScoringWeights, schedule_subtasks
from studyflow.services.planner.engine import (
    catch_up,
    merge_sessions,
    plan_milestones,
    reschedule_sessions,
    roll_over_week,
    select_overdue_sessions,
    select_rollover_sessions,
)
from studyflow.services.planner.preferences import DEFAULT_PREFERENCES, with_defaults

__all__ = [
    "DEFAULT_PREFERENCES",
    "PlanOptions",
    "ScoringWeights",
    "catch_up",
    "merge_sessions",
    "plan_milestones",
    "reschedule_sessions",
    "roll_over_week",
    "schedule_subtasks",
    "select_overdue_sessions",
    "select_rollover_sessions",
    "with_defaults",
]
