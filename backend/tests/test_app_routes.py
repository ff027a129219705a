"""Regression tests for application route registration."""
from fastapi.routing import APIRoute

from studyflow.main import app


def _routes(path: str, method: str) -> list[APIRoute]:
    return [route for route in app.routes if isinstance(route, APIRoute) and route.path == path and method in route.methods]


def test_planner_routes_registered_once() -> None:
    for path in ("/planner/preview", "/planner/apply", "/planner/catch-up", "/planner/rollover"):
        assert len(_routes(path, "POST")) == 1, path


def test_session_status_route_uses_patch() -> None:
    assert len(_routes("/planner/sessions/{session_id}", "PATCH")) == 1
    assert not _routes("/planner/sessions/{session_id}", "POST")
