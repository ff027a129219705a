"""Planner endpoints: preview, apply, session status and reschedules."""
from __future__ import annotations

from time import perf_counter
from typing import Callable
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.planner import (
    PlanRequest,
    PlanResponse,
    RescheduleResponse,
    SessionListResponse,
    SessionStatusUpdateRequest,
    SessionStatusUpdateResponse,
)
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import plan_summary, record_plan_result, trace
from studyflow.services import plan_store
from studyflow.services.planner_service import (
    EmptyPlanError,
    RescheduleOutcome,
    apply_plan,
    build_plan,
    run_catch_up,
    run_rollover,
    set_session_status,
)

router = APIRouter()


@router.post("/planner/preview", response_model=PlanResponse, tags=["planner"])
def planner_preview(
    request: Request,
    payload: PlanRequest,
    db: Session = Depends(get_db),
) -> PlanResponse:
    """Plan every stored milestone without saving."""
    request_id = getattr(request.state, "request_id", None)
    metadata = {
        "route": "/planner/preview",
        "start_date": payload.start_date.isoformat() if payload.start_date else None,
        "request_id": request_id,
    }
    start = perf_counter()
    with trace("planner.preview", metadata=metadata, user_id=str(payload.user_id), request_id=request_id) as planner_trace:
        result = build_plan(db, payload.user_id, start_date=payload.start_date)
        record_plan_result(planner_trace, result)

    latency_ms = (perf_counter() - start) * 1000
    summary = plan_summary(result)
    log_metric("planner.preview.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric("planner.preview.unplaced", summary["unplaced"], metadata={"user_id": str(payload.user_id)})
    log_metric("planner.preview.latency_ms", latency_ms, metadata={"user_id": str(payload.user_id)})

    return PlanResponse(user_id=payload.user_id, plan=result, applied=False, request_id=request_id or "")


@router.post("/planner/apply", response_model=PlanResponse, tags=["planner"])
def planner_apply(
    request: Request,
    payload: PlanRequest,
    db: Session = Depends(get_db),
) -> PlanResponse:
    """Plan every stored milestone and replace the active plan with the result."""
    request_id = getattr(request.state, "request_id", None)
    metadata = {"route": "/planner/apply", "request_id": request_id}
    start = perf_counter()
    try:
        with trace("planner.apply", metadata=metadata, user_id=str(payload.user_id), request_id=request_id) as planner_trace:
            result = apply_plan(db, payload.user_id, start_date=payload.start_date)
            record_plan_result(planner_trace, result)
    except EmptyPlanError as exc:
        log_metric("planner.apply.empty", 1, metadata={"user_id": str(payload.user_id)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    latency_ms = (perf_counter() - start) * 1000
    log_metric("planner.apply.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric("planner.apply.sessions", len(result.sessions), metadata={"user_id": str(payload.user_id)})
    log_metric("planner.apply.latency_ms", latency_ms, metadata={"user_id": str(payload.user_id)})

    return PlanResponse(user_id=payload.user_id, plan=result, applied=True, request_id=request_id or "")


@router.get("/planner/sessions", response_model=SessionListResponse, tags=["planner"])
def list_sessions(
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> SessionListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("planner.sessions", metadata={"route": "/planner/sessions"}, user_id=str(user_id), request_id=request_id):
        sessions = plan_store.load_sessions(db, user_id)
    log_metric("planner.sessions.count", len(sessions), metadata={"user_id": str(user_id)})
    return SessionListResponse(user_id=user_id, sessions=sessions, request_id=request_id or "")


@router.patch("/planner/sessions/{session_id}", response_model=SessionStatusUpdateResponse, tags=["planner"])
def update_session_status(
    session_id: str,
    payload: SessionStatusUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> SessionStatusUpdateResponse:
    """Change a session's status; the transition lands in the progress audit."""
    request_id = getattr(request.state, "request_id", None)
    metadata = {"route": "/planner/sessions/{id}", "session_id": session_id, "status": payload.status}
    start = perf_counter()
    try:
        with trace("planner.session_status", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            session = set_session_status(db, payload.user_id, session_id, payload.status, note=payload.note)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    latency_ms = (perf_counter() - start) * 1000
    log_metric("planner.session_status.success", 1, metadata={"status": payload.status})
    log_metric("planner.session_status.latency_ms", latency_ms, metadata={"session_id": session_id})
    return SessionStatusUpdateResponse(user_id=payload.user_id, session=session, request_id=request_id or "")


@router.post("/planner/catch-up", response_model=RescheduleResponse, tags=["planner"])
def planner_catch_up(
    request: Request,
    payload: PlanRequest,
    db: Session = Depends(get_db),
) -> RescheduleResponse:
    """Move overdue open sessions to the next free slots from today."""
    return _reschedule(request, payload, db, "planner.catch_up", run_catch_up)


@router.post("/planner/rollover", response_model=RescheduleResponse, tags=["planner"])
def planner_rollover(
    request: Request,
    payload: PlanRequest,
    db: Session = Depends(get_db),
) -> RescheduleResponse:
    """Push this week's unfinished sessions into next week."""
    return _reschedule(request, payload, db, "planner.rollover", run_rollover)


def _reschedule(
    request: Request,
    payload: PlanRequest,
    db: Session,
    name: str,
    runner: Callable[..., RescheduleOutcome],
) -> RescheduleResponse:
    request_id = getattr(request.state, "request_id", None)
    start = perf_counter()
    with trace(name, metadata={"request_id": request_id}, user_id=str(payload.user_id), request_id=request_id) as reschedule_trace:
        outcome = runner(db, payload.user_id)
        if reschedule_trace:
            reschedule_trace.update(metadata={"moved": len(outcome.moved), "unplaced": len(outcome.unplaced)})

    latency_ms = (perf_counter() - start) * 1000
    log_metric(f"{name}.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric(f"{name}.moved", len(outcome.moved), metadata={"user_id": str(payload.user_id)})
    log_metric(f"{name}.latency_ms", latency_ms, metadata={"user_id": str(payload.user_id)})

    return RescheduleResponse(
        user_id=payload.user_id,
        moved=outcome.moved,
        unplaced=outcome.unplaced,
        warnings=outcome.warnings,
        sessions=outcome.sessions,
        request_id=request_id or "",
    )
