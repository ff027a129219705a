from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyflow.db.base import Base
from studyflow.db.deps import get_db
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.progress_audit import ProgressAuditRecord
from studyflow.db.models.user import User
from studyflow.main import app


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _next_monday() -> date:
    today = datetime.now(timezone.utc).date()
    return today + timedelta(days=7 - today.weekday())


def _seed_inputs(test_client, user_id, start: date, estimate: float = 3) -> None:
    resp = test_client.post(
        "/assessments",
        json={"user_id": str(user_id), "items": [{"title": "Essay", "due_date": (start + timedelta(days=4)).isoformat(), "weight": 20}]},
    )
    assert resp.status_code == 200
    resp = test_client.post(
        "/milestones",
        json={"user_id": str(user_id), "items": [{"title": "Draft", "estimate_hours": estimate, "assessment_title": "Essay"}]},
    )
    assert resp.status_code == 200


def _seed_session(session_factory, user_id, session_id: str, day: date, status: str = "planned") -> None:
    session = session_factory()
    try:
        if session.get(User, user_id) is None:
            session.add(User(id=user_id))
            session.flush()
        stamp = datetime(2025, 1, 1, tzinfo=timezone.utc)
        session.add(
            PlanSessionRecord(
                id=session_id,
                user_id=user_id,
                assessment_title="Essay",
                assessment_due_date=datetime.now(timezone.utc).date() + timedelta(days=10),
                milestone_title="Draft",
                subtask_title=f"Draft {session_id}",
                scheduled_day=day,
                start_time=time(9, 0),
                end_time=time(10, 0),
                duration_hours=1.0,
                status=status,
                risk_level="on-track",
                version=1,
                created_at=stamp,
                updated_at=stamp,
            )
        )
        session.commit()
    finally:
        session.close()


def test_preview_does_not_persist(client):
    test_client, _ = client
    user_id = uuid4()
    start = _next_monday()
    _seed_inputs(test_client, user_id, start)

    resp = test_client.post("/planner/preview", json={"user_id": str(user_id), "start_date": start.isoformat()})

    assert resp.status_code == 200
    body = resp.json()
    assert body["applied"] is False
    assert body["request_id"]
    assert [session["id"] for session in body["plan"]["sessions"]] == ["Essay-Draft-0", "Essay-Draft-1"]
    listing = test_client.get("/planner/sessions", params={"user_id": str(user_id)})
    assert listing.json()["sessions"] == []


def test_apply_replaces_previous_plan(client):
    test_client, _ = client
    user_id = uuid4()
    start = _next_monday()
    _seed_inputs(test_client, user_id, start)
    payload = {"user_id": str(user_id), "start_date": start.isoformat()}

    first = test_client.post("/planner/apply", json=payload)
    second = test_client.post("/planner/apply", json=payload)

    assert first.status_code == 200 and second.status_code == 200
    assert second.json()["applied"] is True
    listing = test_client.get("/planner/sessions", params={"user_id": str(user_id)}).json()["sessions"]
    assert sorted(session["id"] for session in listing) == ["Essay-Draft-0", "Essay-Draft-1"]
    assert all(date.fromisoformat(session["scheduled_day"]) >= start for session in listing)


def test_apply_without_sessions_is_rejected(client):
    test_client, _ = client

    resp = test_client.post("/planner/apply", json={"user_id": str(uuid4())})

    assert resp.status_code == 400


def test_session_status_update_is_audited(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_session(session_factory, user_id, "s1", datetime.now(timezone.utc).date())

    resp = test_client.patch(
        "/planner/sessions/s1",
        json={"user_id": str(user_id), "status": "done", "note": "finished early"},
    )

    assert resp.status_code == 200
    assert resp.json()["session"]["status"] == "completed"
    audit = test_client.get("/progress/audit", params={"user_id": str(user_id)}).json()["items"]
    assert len(audit) == 1
    assert audit[0]["action"] == "status-change"
    assert (audit[0]["before_status"], audit[0]["after_status"]) == ("planned", "completed")
    assert audit[0]["note"] == "finished early"


def test_session_status_update_unknown_session(client):
    test_client, _ = client

    resp = test_client.patch("/planner/sessions/missing", json={"user_id": str(uuid4()), "status": "completed"})

    assert resp.status_code == 404


def test_session_status_rejects_unknown_value(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_session(session_factory, user_id, "s1", datetime.now(timezone.utc).date())

    resp = test_client.patch("/planner/sessions/s1", json={"user_id": str(user_id), "status": "abandoned"})

    assert resp.status_code == 422


def test_catch_up_moves_overdue_sessions(client):
    test_client, session_factory = client
    user_id = uuid4()
    today = datetime.now(timezone.utc).date()
    overdue_day = today - timedelta(days=3)
    _seed_session(session_factory, user_id, "late", overdue_day)
    _seed_session(session_factory, user_id, "done", overdue_day, status="complete")

    resp = test_client.post("/planner/catch-up", json={"user_id": str(user_id)})

    assert resp.status_code == 200
    body = resp.json()
    assert [session["id"] for session in body["moved"]] == ["late"]
    moved = body["moved"][0]
    assert date.fromisoformat(moved["scheduled_day"]) >= today
    assert moved["rolled_from_date"] == overdue_day.isoformat()

    stored = {session["id"]: session for session in test_client.get("/planner/sessions", params={"user_id": str(user_id)}).json()["sessions"]}
    assert stored["late"]["scheduled_day"] == moved["scheduled_day"]
    assert stored["done"]["status"] == "completed"

    db = session_factory()
    try:
        actions = [row.action for row in db.query(ProgressAuditRecord).filter(ProgressAuditRecord.user_id == user_id).all()]
    finally:
        db.close()
    assert actions == ["reschedule"]


def test_catch_up_with_nothing_overdue(client):
    test_client, _ = client

    resp = test_client.post("/planner/catch-up", json={"user_id": str(uuid4())})

    assert resp.status_code == 200
    assert resp.json()["moved"] == []


def test_rollover_endpoint_returns_reschedule_payload(client):
    test_client, _ = client

    resp = test_client.post("/planner/rollover", json={"user_id": str(uuid4())})

    assert resp.status_code == 200
    assert set(resp.json()) >= {"moved", "unplaced", "warnings", "sessions", "request_id"}


def test_deleting_milestone_removes_its_sessions(client):
    test_client, _ = client
    user_id = uuid4()
    start = _next_monday()
    _seed_inputs(test_client, user_id, start)
    test_client.post("/planner/apply", json={"user_id": str(user_id), "start_date": start.isoformat()})

    resp = test_client.delete(
        "/milestones",
        params={"user_id": str(user_id), "assessment_title": "Essay", "title": "Draft"},
    )

    assert resp.status_code == 200
    assert resp.json()["sessions_removed"] == 2
    assert test_client.get("/planner/sessions", params={"user_id": str(user_id)}).json()["sessions"] == []
    assert test_client.get("/milestones", params={"user_id": str(user_id)}).json()["items"] == []


def test_deleting_assessment_cascades(client):
    test_client, _ = client
    user_id = uuid4()
    start = _next_monday()
    _seed_inputs(test_client, user_id, start)
    test_client.post("/planner/apply", json={"user_id": str(user_id), "start_date": start.isoformat()})

    resp = test_client.delete("/assessments/Essay", params={"user_id": str(user_id)})

    assert resp.status_code == 200
    assert test_client.get("/milestones", params={"user_id": str(user_id)}).json()["items"] == []
    assert test_client.delete("/assessments/Essay", params={"user_id": str(user_id)}).status_code == 404
