"""Helpers for working with users."""
from __future__ import annotations

import logging
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studyflow.core.config import settings
from studyflow.db.models.user import User

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def user_timezone(db: Session, user_id: UUID) -> ZoneInfo:
    """Return the zone the user's calendar is planned in."""
    user = db.get(User, user_id)
    name = (user.timezone if user else None) or settings.planner_timezone
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %r for user %s; using %s", name, user_id, settings.planner_timezone)
        return settings.planner_tz
