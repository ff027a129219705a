from __future__ import annotations

from datetime import date, datetime, time, timezone
from uuid import uuid4

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyflow.core.config import settings
from studyflow.db.base import Base
from studyflow.db.models.notification_state import NotificationStateRecord
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.progress_audit import ProgressAuditRecord
from studyflow.db.models.user import User
from studyflow.services.job_runner import (
    run_catch_up_for_all_users,
    run_catch_up_for_user,
    run_reminders_for_all_users,
    run_reminders_for_user,
)

NOW = datetime(2025, 3, 5, 10, 0)


def _session():
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

    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    return TestingSession


def _seed_user(db_session):
    session = db_session()
    try:
        user_id = uuid4()
        session.add(User(id=user_id))
        session.commit()
        return user_id
    finally:
        session.close()


def _seed_plan_session(db_session, user_id, session_id: str, day: date, status: str = "planned"):
    session = db_session()
    try:
        stamp = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        session.add(
            PlanSessionRecord(
                id=session_id,
                user_id=user_id,
                assessment_title="Essay",
                assessment_due_date=date(2025, 3, 14),
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


def test_catch_up_job_moves_overdue_sessions_per_user():
    Session = _session()
    first_user = _seed_user(Session)
    second_user = _seed_user(Session)
    _seed_plan_session(Session, first_user, "late", date(2025, 3, 3))
    _seed_plan_session(Session, first_user, "done", date(2025, 3, 3), status="completed")
    _seed_plan_session(Session, second_user, "upcoming", date(2025, 3, 7))

    session = Session()
    result = run_catch_up_for_all_users(session, now=NOW)

    assert result.users_processed == 2
    assert result.sessions_moved == 1
    assert result.failures == 0
    moved = session.get(PlanSessionRecord, ("late", first_user))
    assert moved.scheduled_day >= date(2025, 3, 5)
    assert moved.rolled_from_date == date(2025, 3, 3)
    audits = session.query(ProgressAuditRecord).filter(ProgressAuditRecord.action == "reschedule").all()
    assert [row.session_id for row in audits] == ["late"]

    second = run_catch_up_for_all_users(session, now=NOW)
    assert second.sessions_moved == 0
    session.close()


def test_catch_up_for_user_without_sessions():
    Session = _session()
    user_id = _seed_user(Session)

    session = Session()
    assert run_catch_up_for_user(session, user_id, now=NOW) == 0
    session.close()


def test_reminder_job_counts_dispatched_reminders(monkeypatch):
    Session = _session()
    user_id = _seed_user(Session)
    _seed_plan_session(Session, user_id, "late", date(2025, 3, 3))
    _seed_plan_session(Session, user_id, "later", date(2025, 3, 7))

    monkeypatch.setattr(settings, "notifications_enabled", True)
    session = Session()
    result = run_reminders_for_all_users(session, now=NOW)
    assert result.users_processed == 1
    # Only the overdue reminder is urgent; the heads-up stays in-app.
    assert result.reminders_sent == 1

    monkeypatch.setattr(settings, "notifications_enabled", False)
    muted = run_reminders_for_all_users(session, user_ids=[user_id], now=NOW)
    assert muted.users_processed == 1
    assert muted.reminders_sent == 0
    session.close()


def test_reminder_job_does_not_resend_reminders(monkeypatch):
    Session = _session()
    user_id = _seed_user(Session)
    _seed_plan_session(Session, user_id, "late", date(2025, 3, 3))
    monkeypatch.setattr(settings, "notifications_enabled", True)

    session = Session()
    assert run_reminders_for_user(session, user_id, now=NOW) == 1
    assert run_reminders_for_user(session, user_id, now=NOW) == 0
    marker = session.get(NotificationStateRecord, ("late:overdue", user_id))
    assert marker.dispatched_at is not None
    assert marker.session_id == "late"
    session.close()


def test_skipped_reminders_are_not_marked_sent(monkeypatch):
    Session = _session()
    user_id = _seed_user(Session)
    _seed_plan_session(Session, user_id, "late", date(2025, 3, 3))

    session = Session()
    monkeypatch.setattr(settings, "notifications_enabled", False)
    assert run_reminders_for_user(session, user_id, now=NOW) == 0
    monkeypatch.setattr(settings, "notifications_enabled", True)
    assert run_reminders_for_user(session, user_id, now=NOW) == 1
    session.close()


def test_rescheduled_session_can_be_reminded_again(monkeypatch):
    Session = _session()
    user_id = _seed_user(Session)
    _seed_plan_session(Session, user_id, "late", date(2025, 3, 3))
    monkeypatch.setattr(settings, "notifications_enabled", True)

    session = Session()
    assert run_reminders_for_user(session, user_id, now=NOW) == 1
    assert run_catch_up_for_user(session, user_id, now=NOW) == 1
    session.expire_all()
    marker = session.get(NotificationStateRecord, ("late:overdue", user_id))
    assert marker.dispatched_at is None
    session.close()
