"""Planner preference defaults and normalization."""
from __future__ import annotations

from typing import Any, Mapping

from studyflow.api.schemas.planner import PlannerPreferences

DEFAULT_PREFERENCES = PlannerPreferences()

MIN_SESSION_FLOOR_MINUTES = 5


def with_defaults(prefs: PlannerPreferences | Mapping[str, Any] | None = None) -> PlannerPreferences:
    """Fill missing fields with defaults and clamp out-of-range values.

    Accepts a complete model, a partial mapping (``None`` values count as
    missing) or nothing at all.
    """
    if prefs is None:
        raw: dict[str, Any] = {}
    elif isinstance(prefs, PlannerPreferences):
        raw = prefs.model_dump()
    else:
        raw = {key: value for key, value in prefs.items() if value is not None}

    merged = {**DEFAULT_PREFERENCES.model_dump(), **raw}
    merged = {key: merged[key] for key in PlannerPreferences.model_fields}

    min_minutes = max(MIN_SESSION_FLOOR_MINUTES, int(merged["min_session_minutes"]))
    max_minutes = max(min_minutes, int(merged["max_session_minutes"]))
    start_hour = max(0, min(23, int(merged["start_hour"])))
    end_hour = max(0, min(24, int(merged["end_hour"])))

    return PlannerPreferences(
        daily_cap_hours=max(0.0, float(merged["daily_cap_hours"])),
        min_session_minutes=min_minutes,
        max_session_minutes=max_minutes,
        focus_block_minutes=max(0, int(merged["focus_block_minutes"])),
        allow_weekends=bool(merged["allow_weekends"]),
        start_hour=start_hour,
        end_hour=end_hour,
    )
