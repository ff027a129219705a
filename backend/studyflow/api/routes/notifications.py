"""Session reminder routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.notifications import (
    NotificationActionRequest,
    NotificationListResponse,
    NotificationSnoozeRequest,
    NotificationStateResponse,
)
from studyflow.core.config import settings
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric, timed
from studyflow.observability.tracing import trace
from studyflow.services import plan_store
from studyflow.services.notifications import states as notification_states
from studyflow.services.notifications.reminders import generate_notifications
from studyflow.services.user_service import user_timezone


router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse, tags=["notifications"])
def list_notifications(
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> NotificationListResponse:
    """Derive reminders for the user's open sessions."""
    request_id = getattr(request.state, "request_id", None)
    with timed("notifications.list", metadata={"user_id": str(user_id)}):
        with trace("notifications.list", metadata={"route": "/notifications"}, user_id=str(user_id), request_id=request_id):
            items = generate_notifications(
                plan_store.load_sessions(db, user_id),
                notification_states.load_states(db, user_id),
                tz=user_timezone(db, user_id),
            )
    log_metric("notifications.list.count", len(items), metadata={"user_id": str(user_id)})
    return NotificationListResponse(user_id=user_id, items=items, request_id=request_id or "")


@router.post("/notifications/{notification_id}/dismiss", response_model=NotificationStateResponse, tags=["notifications"])
def dismiss_notification(
    notification_id: str,
    payload: NotificationActionRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> NotificationStateResponse:
    request_id = getattr(request.state, "request_id", None)
    try:
        with trace(
            "notifications.dismiss",
            metadata={"notification_id": notification_id},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            state = notification_states.dismiss(db, payload.user_id, notification_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    log_metric("notifications.dismiss.success", 1, metadata={"user_id": str(payload.user_id)})
    return NotificationStateResponse(user_id=payload.user_id, state=state, request_id=request_id or "")


@router.post("/notifications/{notification_id}/snooze", response_model=NotificationStateResponse, tags=["notifications"])
def snooze_notification(
    notification_id: str,
    payload: NotificationSnoozeRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> NotificationStateResponse:
    request_id = getattr(request.state, "request_id", None)
    try:
        with trace(
            "notifications.snooze",
            metadata={"notification_id": notification_id, "hours": payload.hours},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            state = notification_states.snooze(db, payload.user_id, notification_id, payload.hours)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    log_metric("notifications.snooze.success", 1, metadata={"user_id": str(payload.user_id), "hours": payload.hours})
    return NotificationStateResponse(user_id=payload.user_id, state=state, request_id=request_id or "")


@router.get("/notifications/config", tags=["notifications"])
def get_notifications_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace(
        "notifications.config",
        metadata={"provider": settings.notifications_provider},
        request_id=request_id,
    ):
        log_metric("notifications.config.success", 1, metadata={"provider": settings.notifications_provider})
        return {
            "enabled": settings.notifications_enabled,
            "provider": settings.notifications_provider,
            "request_id": request_id or "",
        }
