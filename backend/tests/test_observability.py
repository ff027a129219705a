"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import importlib

from studyflow.api.schemas.planner import PlanResult, PlanWarning
from studyflow.observability import tracing


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import studyflow.core.config as core_config
    import studyflow.observability.client as client_module
    import studyflow.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.get_opik_client() is None


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("planner.preview", metadata={"route": "/planner/preview"}) as opik_trace:
        assert opik_trace is None


def test_plan_summary_counts_warning_types() -> None:
    result = PlanResult(
        warnings=[
            PlanWarning(type="capacity", message="a"),
            PlanWarning(type="capacity", message="b"),
            PlanWarning(type="info", message="c"),
        ],
        version=3,
    )

    summary = tracing.plan_summary(result)

    assert summary["version"] == 3
    assert summary["warning_types"] == {"capacity": 2, "info": 1}
    assert summary["sessions"] == 0
