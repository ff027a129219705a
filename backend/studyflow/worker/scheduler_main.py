"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from studyflow.core.config import settings
from studyflow.core.logging import configure_logging
from studyflow.db.session import SessionLocal
from studyflow.services.job_runner import (
    run_catch_up_for_all_users,
    run_reminders_for_all_users,
)


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level, planner_log_level=settings.planner_log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running jobs once on startup")
            run_catch_up_job()
            run_reminder_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_catch_up_job,
        trigger="cron",
        hour=settings.catch_up_job_hour,
        minute=settings.catch_up_job_minute,
        id="catch_up_job",
        replace_existing=True,
    )
    scheduler.add_job(
        run_reminder_job,
        trigger="interval",
        minutes=settings.reminder_job_interval_minutes,
        id="reminder_job",
        replace_existing=True,
    )
    logger.info(
        "Registered scheduler jobs (catch-up daily at %02d:%02d %s, reminders every %s min)",
        settings.catch_up_job_hour,
        settings.catch_up_job_minute,
        settings.scheduler_timezone,
        settings.reminder_job_interval_minutes,
    )


def run_catch_up_job() -> None:
    session = SessionLocal()
    try:
        result = run_catch_up_for_all_users(session)
        logger.info(
            "Catch-up job complete: users=%s, moved=%s, failures=%s",
            result.users_processed,
            result.sessions_moved,
            result.failures,
        )
    except Exception:  # pragma: no cover
        logger.exception("Catch-up job failed")
    finally:
        session.close()


def run_reminder_job() -> None:
    session = SessionLocal()
    try:
        result = run_reminders_for_all_users(session)
        logger.info(
            "Reminder job complete: users=%s, sent=%s, failures=%s",
            result.users_processed,
            result.reminders_sent,
            result.failures,
        )
    except Exception:  # pragma: no cover
        logger.exception("Reminder job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
