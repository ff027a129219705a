"""Assessment routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.inputs import AssessmentListResponse, AssessmentUpsertRequest, DeleteResponse
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services import inputs_store

router = APIRouter()


@router.get("/assessments", response_model=AssessmentListResponse, tags=["assessments"])
def list_assessments(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> AssessmentListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("assessments.list", metadata={"route": "/assessments"}, user_id=str(user_id), request_id=request_id):
        items = inputs_store.load_assessments(db, user_id)
    log_metric("assessments.list.count", len(items), metadata={"user_id": str(user_id)})
    return AssessmentListResponse(user_id=user_id, items=items, request_id=request_id or "")


@router.post("/assessments", response_model=AssessmentListResponse, tags=["assessments"])
def upsert_assessments(
    request: Request,
    payload: AssessmentUpsertRequest,
    db: Session = Depends(get_db),
) -> AssessmentListResponse:
    """Create or update assessments by title."""
    request_id = getattr(request.state, "request_id", None)
    with trace("assessments.upsert", metadata={"count": len(payload.items)}, user_id=str(payload.user_id), request_id=request_id):
        items = inputs_store.save_assessments(db, payload.user_id, payload.items)
    log_metric("assessments.upsert.success", 1, metadata={"user_id": str(payload.user_id)})
    return AssessmentListResponse(user_id=payload.user_id, items=items, request_id=request_id or "")


@router.delete("/assessments/{title}", response_model=DeleteResponse, tags=["assessments"])
def delete_assessment(
    title: str,
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete an assessment with its milestones, sessions, reminder states and audit rows."""
    request_id = getattr(request.state, "request_id", None)
    try:
        with trace("assessments.delete", metadata={"title": title}, user_id=str(user_id), request_id=request_id):
            removed = inputs_store.delete_assessment(db, user_id, title)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")
    log_metric("assessments.delete.sessions_removed", removed, metadata={"user_id": str(user_id)})
    return DeleteResponse(user_id=user_id, deleted=True, sessions_removed=removed, request_id=request_id or "")
