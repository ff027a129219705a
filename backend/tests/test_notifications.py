from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyflow.api.schemas.notifications import NotificationItem
from studyflow.core.config import settings
from studyflow.db.base import Base
from studyflow.db.deps import get_db
from studyflow.db.models.notification_state import NotificationStateRecord
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.user import User
from studyflow.main import app
from studyflow.services.notifications.base import NotificationResult
from studyflow.services.notifications.hooks import dispatch_session_reminders
from studyflow.services.notifications.states import parse_notification_id


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
    monkeypatch.setattr(settings, "notifications_enabled", True)
    monkeypatch.setattr(settings, "notifications_provider", "noop")
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _seed_session(session_factory, user_id, session_id: str, day: date, start: time = time(9, 0), status: str = "planned"):
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
                assessment_title="Lab report",
                assessment_due_date=day + timedelta(days=5),
                milestone_title="Analysis",
                subtask_title=f"Analysis {session_id}",
                scheduled_day=day,
                start_time=start,
                end_time=time(start.hour + 1, start.minute),
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


def _item(session_id: str, severity: str, reason: str) -> NotificationItem:
    return NotificationItem(
        id=f"{session_id}:{reason}",
        title=f"Reminder {session_id}",
        message="Scheduled soon",
        due_date=date(2025, 3, 5),
        session_id=session_id,
        severity=severity,
        reason=reason,
        created_at=datetime(2025, 3, 5, 10, 0),
    )


def test_list_reports_overdue_and_heads_up(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_session(session_factory, user_id, "late", _today() - timedelta(days=2))
    _seed_session(session_factory, user_id, "later", _today() + timedelta(days=2), start=time(12, 0))
    _seed_session(session_factory, user_id, "finished", _today() - timedelta(days=2), status="done")

    resp = test_client.get("/notifications", params={"user_id": str(user_id)})

    assert resp.status_code == 200
    items = resp.json()["items"]
    assert [(item["id"], item["severity"]) for item in items] == [("late:overdue", "urgent"), ("later:heads-up", "info")]


def test_dismiss_hides_heads_up_but_not_overdue(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_session(session_factory, user_id, "late", _today() - timedelta(days=2))
    _seed_session(session_factory, user_id, "later", _today() + timedelta(days=2), start=time(12, 0))

    for notification_id in ("late:overdue", "later:heads-up"):
        resp = test_client.post(f"/notifications/{notification_id}/dismiss", json={"user_id": str(user_id)})
        assert resp.status_code == 200
        assert resp.json()["state"]["dismissed_at"]

    items = test_client.get("/notifications", params={"user_id": str(user_id)}).json()["items"]
    assert [item["id"] for item in items] == ["late:overdue"]


def test_snooze_hides_overdue_reminder(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_session(session_factory, user_id, "late", _today() - timedelta(days=2))

    resp = test_client.post("/notifications/late:overdue/snooze", json={"user_id": str(user_id), "hours": 2})

    assert resp.status_code == 200
    assert resp.json()["state"]["snoozed_until"]
    assert test_client.get("/notifications", params={"user_id": str(user_id)}).json()["items"] == []

    session = session_factory()
    row = session.get(NotificationStateRecord, ("late:overdue", user_id))
    session.close()
    assert row.session_id == "late"


def test_invalid_notification_id_is_rejected(client):
    test_client, _ = client

    resp = test_client.post("/notifications/late:someday/dismiss", json={"user_id": str(uuid4())})

    assert resp.status_code == 400


def test_notifications_config_reports_provider(client):
    test_client, _ = client

    resp = test_client.get("/notifications/config")

    assert resp.status_code == 200
    assert resp.json()["enabled"] is True
    assert resp.json()["provider"] == "noop"


def test_parse_notification_id_allows_colons_in_session_id():
    assert parse_notification_id("Essay:Draft-0:due-now") == ("Essay:Draft-0", "due-now")
    with pytest.raises(ValueError):
        parse_notification_id("overdue")


def test_dispatch_sends_only_urgent_and_warning(monkeypatch):
    sent = []

    class DummyService:
        def notify_session_reminder(self, *, user_id, item, request_id):
            sent.append(item.id)
            return NotificationResult(status="sent", reason="dummy")

    monkeypatch.setattr(settings, "notifications_enabled", True)
    monkeypatch.setattr("studyflow.services.notifications.hooks.get_notification_service", lambda: DummyService())
    items = [_item("a", "urgent", "overdue"), _item("b", "warning", "due-soon"), _item("c", "info", "heads-up")]

    results = dispatch_session_reminders(uuid4(), items, request_id="req-1")

    assert sent == ["a:overdue", "b:due-soon"]
    assert [result.status for result in results] == ["sent", "sent"]


def test_dispatch_skipped_when_disabled(monkeypatch):
    called = {"value": False}

    class DummyService:
        def notify_session_reminder(self, **kwargs):  # pragma: no cover - not used
            called["value"] = True
            return NotificationResult(status="sent", reason="dummy")

    monkeypatch.setattr(settings, "notifications_enabled", False)
    monkeypatch.setattr("studyflow.services.notifications.hooks.get_notification_service", lambda: DummyService())

    results = dispatch_session_reminders(uuid4(), [_item("a", "urgent", "overdue")])

    assert [result.status for result in results] == ["skipped"]
    assert called["value"] is False
