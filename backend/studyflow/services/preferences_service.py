"""Planner preference storage."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from studyflow.api.schemas.planner import PlannerPreferences, PlannerPreferencesUpdate
from studyflow.db.models.planner_preferences import PlannerPreferencesRecord
from studyflow.services.planner.preferences import DEFAULT_PREFERENCES, with_defaults
from studyflow.services.user_service import get_or_create_user

PREFERENCE_FIELDS = tuple(PlannerPreferences.model_fields)


def get_preferences(db: Session, user_id: UUID) -> PlannerPreferences:
    """Return the user's preferences with defaults applied for absent fields."""
    row = db.get(PlannerPreferencesRecord, user_id)
    if row is None:
        return with_defaults()
    return with_defaults({field: getattr(row, field) for field in PREFERENCE_FIELDS})


def update_preferences(db: Session, payload: PlannerPreferencesUpdate) -> PlannerPreferences:
    """Apply a partial update and return the resolved preferences."""
    get_or_create_user(db, payload.user_id)
    row = db.get(PlannerPreferencesRecord, payload.user_id)
    if row is None:
        row = PlannerPreferencesRecord(user_id=payload.user_id)
        db.add(row)

    changes = payload.model_dump(exclude_unset=True, exclude={"user_id"})
    for field, value in changes.items():
        setattr(row, field, value)

    candidate = {
        **DEFAULT_PREFERENCES.model_dump(),
        **{field: getattr(row, field) for field in PREFERENCE_FIELDS if getattr(row, field) is not None},
    }
    if candidate["max_session_minutes"] < candidate["min_session_minutes"]:
        db.rollback()
        raise ValueError("max_session_minutes must be at least min_session_minutes")
    if candidate["end_hour"] <= candidate["start_hour"]:
        db.rollback()
        raise ValueError("end_hour must be after start_hour")

    db.commit()
    return with_defaults(candidate)
