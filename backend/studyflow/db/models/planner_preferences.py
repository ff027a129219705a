"""Planner preference ORM model."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class PlannerPreferencesRecord(Base):
    """One row per user; NULL columns fall back to the planner defaults."""

    __tablename__ = "planner_preferences"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    daily_cap_hours = Column(Float, nullable=True)
    min_session_minutes = Column(Integer, nullable=True)
    max_session_minutes = Column(Integer, nullable=True)
    focus_block_minutes = Column(Integer, nullable=True)
    allow_weekends = Column(Boolean, nullable=True)
    start_hour = Column(Integer, nullable=True)
    end_hour = Column(Integer, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
