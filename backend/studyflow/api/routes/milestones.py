"""Milestone routes, including suggested milestones for an assessment."""
from __future__ import annotations

from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.inputs import (
    DeleteResponse,
    MilestoneGenerateRequest,
    MilestoneGenerateResponse,
    MilestoneListResponse,
    MilestoneUpsertRequest,
)
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services import inputs_store
from studyflow.services.milestone_generator import generate_milestones

router = APIRouter()


@router.get("/milestones", response_model=MilestoneListResponse, tags=["milestones"])
def list_milestones(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> MilestoneListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("milestones.list", metadata={"route": "/milestones"}, user_id=str(user_id), request_id=request_id):
        items = inputs_store.load_milestones(db, user_id)
    log_metric("milestones.list.count", len(items), metadata={"user_id": str(user_id)})
    return MilestoneListResponse(user_id=user_id, items=items, request_id=request_id or "")


@router.post("/milestones", response_model=MilestoneListResponse, tags=["milestones"])
def upsert_milestones(
    request: Request,
    payload: MilestoneUpsertRequest,
    db: Session = Depends(get_db),
) -> MilestoneListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("milestones.upsert", metadata={"count": len(payload.items)}, user_id=str(payload.user_id), request_id=request_id):
        items = inputs_store.save_milestones(db, payload.user_id, payload.items, source="manual")
    log_metric("milestones.upsert.success", 1, metadata={"user_id": str(payload.user_id)})
    return MilestoneListResponse(user_id=payload.user_id, items=items, request_id=request_id or "")


@router.delete("/milestones", response_model=DeleteResponse, tags=["milestones"])
def delete_milestone(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    assessment_title: str = Query(..., min_length=1),
    title: str = Query(..., min_length=1, description="Milestone title"),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete one milestone and the sessions planned for it."""
    request_id = getattr(request.state, "request_id", None)
    metadata = {"assessment_title": assessment_title, "title": title}
    try:
        with trace("milestones.delete", metadata=metadata, user_id=str(user_id), request_id=request_id):
            removed = inputs_store.delete_milestone(db, user_id, assessment_title, title)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Milestone not found")
    log_metric("milestones.delete.sessions_removed", removed, metadata={"user_id": str(user_id)})
    return DeleteResponse(user_id=user_id, deleted=True, sessions_removed=removed, request_id=request_id or "")


@router.post("/milestones/generate", response_model=MilestoneGenerateResponse, tags=["milestones"])
def generate_assessment_milestones(
    request: Request,
    payload: MilestoneGenerateRequest,
    db: Session = Depends(get_db),
) -> MilestoneGenerateResponse:
    """Suggest milestones for a stored assessment, optionally saving them."""
    request_id = getattr(request.state, "request_id", None)
    assessment = next(
        (item for item in inputs_store.load_assessments(db, payload.user_id) if item.title == payload.assessment_title),
        None,
    )
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found")

    start = perf_counter()
    milestones, source = generate_milestones(assessment, payload.rubric_text, request_id=request_id)
    if payload.save:
        inputs_store.save_milestones(db, payload.user_id, milestones, source=source)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("milestones.generate.success", 1, metadata={"user_id": str(payload.user_id), "source": source})
    log_metric("milestones.generate.latency_ms", latency_ms, metadata={"source": source})
    return MilestoneGenerateResponse(
        user_id=payload.user_id,
        milestones=milestones,
        source=source,
        saved=payload.save,
        request_id=request_id or "",
    )
