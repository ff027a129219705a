from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyflow.core.config import settings
from studyflow.db.base import Base
from studyflow.services.job_runner import JobRunResult
from studyflow.worker import scheduler_main


def test_register_jobs_adds_catch_up_and_reminders(monkeypatch) -> None:
    monkeypatch.setattr(settings, "reminder_job_interval_minutes", 15)
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler_main.register_jobs(scheduler)

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"catch_up_job", "reminder_job"}
    assert jobs["reminder_job"].trigger.interval.total_seconds() == 15 * 60


def test_jobs_open_and_close_their_own_session(monkeypatch) -> None:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    monkeypatch.setattr(scheduler_main, "SessionLocal", factory)
    calls = []

    def fake_catch_up(session):
        calls.append("catch_up")
        return JobRunResult(users_processed=0)

    def fake_reminders(session):
        calls.append("reminders")
        return JobRunResult(users_processed=0)

    monkeypatch.setattr(scheduler_main, "run_catch_up_for_all_users", fake_catch_up)
    monkeypatch.setattr(scheduler_main, "run_reminders_for_all_users", fake_reminders)

    scheduler_main.run_catch_up_job()
    scheduler_main.run_reminder_job()

    assert calls == ["catch_up", "reminders"]
