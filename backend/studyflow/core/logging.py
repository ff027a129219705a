"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from studyflow.core.context import get_request_id, get_user_id


class RequestContextFilter(logging.Filter):
    """Attach request_id and user_id attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", planner_log_level: str | None = None) -> None:
    """Configure application logging once at startup.

    ``planner_log_level`` lets the allocator's per-run summaries be turned up
    without flooding the rest of the service.
    """
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | user=%(user_id)s | %(message)s",
                }
            },
            "filters": {
                "request_context": {
                    "()": "studyflow.core.logging.RequestContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": "DEBUG",
                    "filters": ["request_context"],
                }
            },
            "loggers": {
                "studyflow.services.planner": {
                    "level": planner_log_level or log_level,
                },
                "apscheduler": {
                    "level": "WARNING",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
