"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.jobs import JobRunRequest, JobRunResponse
from studyflow.core.config import settings
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services.job_runner import (
    JobRunResult,
    run_catch_up_for_all_users,
    run_reminders_for_all_users,
)

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "catch_up_time": f"{settings.catch_up_job_hour:02d}:{settings.catch_up_job_minute:02d}",
                "reminder_interval_minutes": settings.reminder_job_interval_minutes,
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    user_ids = [payload.user_id] if payload.user_id else None
    start = perf_counter()
    with trace("jobs.run_now", metadata={"job": payload.job, "request_id": request_id}, request_id=request_id):
        if payload.job == "catch_up":
            result: JobRunResult = run_catch_up_for_all_users(db, user_ids=user_ids)
        else:
            result = run_reminders_for_all_users(db, user_ids=user_ids)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.run_now.success", 1, metadata={"job": payload.job})
    log_metric("jobs.run_now.latency_ms", latency_ms, metadata={"job": payload.job})

    return JobRunResponse(
        job=payload.job,
        users_processed=result.users_processed,
        sessions_moved=result.sessions_moved,
        reminders_sent=result.reminders_sent,
        failures=result.failures,
        request_id=request_id or "",
    )
