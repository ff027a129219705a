"""Weekly progress and audit trail routes."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from studyflow.api.schemas.progress import ProgressAuditResponse, WeeklyProgressResponse
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services import plan_store
from studyflow.services.progress_service import build_weekly_summaries
from studyflow.services.user_service import user_timezone

router = APIRouter()


@router.get("/progress/weekly", response_model=WeeklyProgressResponse, tags=["progress"])
def weekly_progress(
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> WeeklyProgressResponse:
    """Planned versus completed hours per week."""
    request_id = getattr(request.state, "request_id", None)
    with trace("progress.weekly", metadata={"route": "/progress/weekly"}, user_id=str(user_id), request_id=request_id):
        tz = user_timezone(db, user_id)
        weeks = build_weekly_summaries(plan_store.load_sessions(db, user_id), datetime.now(tz))

    behind = sum(1 for week in weeks if week.status != "on-track")
    log_metric("progress.weekly.success", 1, metadata={"user_id": str(user_id)})
    log_metric("progress.weekly.behind_weeks", behind, metadata={"user_id": str(user_id)})
    return WeeklyProgressResponse(user_id=user_id, weeks=weeks, request_id=request_id or "")


@router.get("/progress/audit", response_model=ProgressAuditResponse, tags=["progress"])
def progress_audit(
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
) -> ProgressAuditResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("progress.audit", metadata={"limit": limit}, user_id=str(user_id), request_id=request_id):
        items = plan_store.list_audit(db, user_id, limit=limit)
    log_metric("progress.audit.count", len(items), metadata={"user_id": str(user_id)})
    return ProgressAuditResponse(user_id=user_id, items=items, request_id=request_id or "")
