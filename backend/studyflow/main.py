"""Main FastAPI application for the StudyFlow backend."""
from fastapi import FastAPI, Request

from studyflow.api.routes.assessments import router as assessments_router
from studyflow.api.routes.busy_blocks import router as busy_blocks_router
from studyflow.api.routes.jobs import router as jobs_router
from studyflow.api.routes.milestones import router as milestones_router
from studyflow.api.routes.notifications import router as notifications_router
from studyflow.api.routes.planner import router as planner_router
from studyflow.api.routes.preferences import router as preferences_router
from studyflow.api.routes.progress import router as progress_router
from studyflow.core.config import settings
from studyflow.core.logging import configure_logging
from studyflow.core.middleware import RequestContextMiddleware
from studyflow.observability.client import init_opik
from studyflow.observability.tracing import trace

configure_logging(log_level=settings.log_level, planner_log_level=settings.planner_log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestContextMiddleware)
app.include_router(preferences_router)
app.include_router(assessments_router)
app.include_router(milestones_router)
app.include_router(busy_blocks_router)
app.include_router(planner_router)
app.include_router(notifications_router)
app.include_router(progress_router)
app.include_router(jobs_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
