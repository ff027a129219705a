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
from studyflow.db.models.user import User
from studyflow.main import app


@pytest.fixture()
def client(monkeypatch):
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
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def test_preferences_default_then_partial_update(client):
    test_client, _ = client
    user_id = str(uuid4())

    defaults = test_client.get("/preferences", params={"user_id": user_id})
    assert defaults.status_code == 200
    assert defaults.json()["preferences"] == {
        "daily_cap_hours": 4,
        "min_session_minutes": 45,
        "max_session_minutes": 105,
        "focus_block_minutes": 15,
        "allow_weekends": False,
        "start_hour": 9,
        "end_hour": 18,
    }

    resp = test_client.put("/preferences", json={"user_id": user_id, "allow_weekends": True, "daily_cap_hours": 6})
    assert resp.status_code == 200
    assert resp.json()["preferences"]["allow_weekends"] is True

    again = test_client.get("/preferences", params={"user_id": user_id}).json()["preferences"]
    assert again["daily_cap_hours"] == 6
    assert again["start_hour"] == 9


def test_preferences_reject_inverted_bounds(client):
    test_client, _ = client
    user_id = str(uuid4())

    resp = test_client.put("/preferences", json={"user_id": user_id, "min_session_minutes": 90, "max_session_minutes": 60})
    assert resp.status_code == 400

    resp = test_client.put("/preferences", json={"user_id": user_id, "start_hour": 17, "end_hour": 9})
    assert resp.status_code == 400

    assert test_client.get("/preferences", params={"user_id": user_id}).json()["preferences"]["start_hour"] == 9


def test_preferences_validate_ranges(client):
    test_client, _ = client

    resp = test_client.put("/preferences", json={"user_id": str(uuid4()), "daily_cap_hours": 30})

    assert resp.status_code == 422


def test_busy_blocks_round_trip_and_delete(client):
    test_client, _ = client
    user_id = str(uuid4())
    block = {"id": "lecture", "title": "Lecture", "start": "2025-03-04T10:00:00", "end": "2025-03-04T12:00:00"}

    resp = test_client.post("/busy-blocks", json={"user_id": user_id, "items": [block]})
    assert resp.status_code == 200
    assert [item["id"] for item in resp.json()["items"]] == ["lecture"]

    moved = {**block, "start": "2025-03-04T13:00:00", "end": "2025-03-04T14:00:00"}
    items = test_client.post("/busy-blocks", json={"user_id": user_id, "items": [moved]}).json()["items"]
    assert len(items) == 1
    assert items[0]["start"].startswith("2025-03-04T13:00")

    assert test_client.delete("/busy-blocks/lecture", params={"user_id": user_id}).status_code == 200
    assert test_client.delete("/busy-blocks/lecture", params={"user_id": user_id}).status_code == 404


def test_busy_block_must_end_after_start(client):
    test_client, _ = client
    user_id = str(uuid4())
    block = {"id": "bad", "start": "2025-03-04T12:00:00", "end": "2025-03-04T10:00:00"}

    resp = test_client.post("/busy-blocks", json={"user_id": user_id, "items": [block]})

    assert resp.status_code == 400
    assert test_client.get("/busy-blocks", params={"user_id": user_id}).json()["items"] == []


def test_empty_upsert_is_rejected(client):
    test_client, _ = client

    resp = test_client.post("/assessments", json={"user_id": str(uuid4()), "items": []})

    assert resp.status_code == 422


def test_generate_milestones_falls_back_to_template(client):
    test_client, _ = client
    user_id = str(uuid4())
    due = date.today() + timedelta(days=20)
    test_client.post("/assessments", json={"user_id": user_id, "items": [{"title": "Essay", "due_date": due.isoformat()}]})

    resp = test_client.post("/milestones/generate", json={"user_id": user_id, "assessment_title": "Essay"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "rule-based"
    assert body["saved"] is False
    assert [item["title"] for item in body["milestones"]][-1] == "Finalise & Submit"
    assert body["milestones"][-1]["target_date"] == due.isoformat()
    assert test_client.get("/milestones", params={"user_id": user_id}).json()["items"] == []


def test_generate_milestones_can_save(client):
    test_client, _ = client
    user_id = str(uuid4())
    due = date.today() + timedelta(days=10)
    test_client.post("/assessments", json={"user_id": user_id, "items": [{"title": "Essay", "due_date": due.isoformat()}]})

    resp = test_client.post("/milestones/generate", json={"user_id": user_id, "assessment_title": "Essay", "save": True})

    assert resp.json()["saved"] is True
    stored = test_client.get("/milestones", params={"user_id": user_id}).json()["items"]
    assert len(stored) == 5
    assert all(item["assessment_title"] == "Essay" for item in stored)


def test_generate_milestones_unknown_assessment(client):
    test_client, _ = client

    resp = test_client.post("/milestones/generate", json={"user_id": str(uuid4()), "assessment_title": "Ghost"})

    assert resp.status_code == 404


def test_weekly_progress_and_audit_limit(client):
    test_client, session_factory = client
    user_id = uuid4()
    today = datetime.now(timezone.utc).date()
    session = session_factory()
    session.add(User(id=user_id))
    session.flush()
    stamp = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for index, status in enumerate(("completed", "planned")):
        session.add(
            PlanSessionRecord(
                id=f"s{index}",
                user_id=user_id,
                assessment_title="Essay",
                assessment_due_date=today + timedelta(days=7),
                milestone_title="Draft",
                subtask_title=f"Draft {index}",
                scheduled_day=today,
                start_time=time(9 + 2 * index, 0),
                end_time=time(10 + 2 * index, 0),
                duration_hours=1.0,
                status=status,
                risk_level="on-track",
                version=1,
                created_at=stamp,
                updated_at=stamp,
            )
        )
    session.commit()
    session.close()

    weeks = test_client.get("/progress/weekly", params={"user_id": str(user_id)}).json()["weeks"]
    assert len(weeks) == 1
    assert (weeks[0]["planned_hours"], weeks[0]["completed_hours"]) == (2.0, 1.0)
    assert weeks[0]["status"] == "at-risk"

    for status in ("in-progress", "completed"):
        test_client.patch("/planner/sessions/s1", json={"user_id": str(user_id), "status": status})
    audit = test_client.get("/progress/audit", params={"user_id": str(user_id), "limit": 1}).json()["items"]
    assert len(audit) == 1
