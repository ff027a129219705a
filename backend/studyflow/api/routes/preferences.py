"""Planner preference routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.planner import PlannerPreferencesUpdate, PreferencesResponse
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services.preferences_service import get_preferences, update_preferences

router = APIRouter()


@router.get("/preferences", response_model=PreferencesResponse, tags=["preferences"])
def read_preferences(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("preferences.get", metadata={"route": "/preferences"}, user_id=str(user_id), request_id=request_id):
        prefs = get_preferences(db, user_id)
    log_metric("preferences.get.success", 1, metadata={"user_id": str(user_id)})
    return PreferencesResponse(user_id=user_id, preferences=prefs, request_id=request_id or "")


@router.put("/preferences", response_model=PreferencesResponse, tags=["preferences"])
def write_preferences(
    request: Request,
    payload: PlannerPreferencesUpdate,
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    """Update any subset of the planner preferences."""
    request_id = getattr(request.state, "request_id", None)
    changed = sorted(payload.model_dump(exclude_unset=True, exclude={"user_id"}))
    try:
        with trace(
            "preferences.update",
            metadata={"fields": changed},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            prefs = update_preferences(db, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    log_metric("preferences.update.success", 1, metadata={"user_id": str(payload.user_id), "fields": changed})
    return PreferencesResponse(user_id=payload.user_id, preferences=prefs, request_id=request_id or "")
