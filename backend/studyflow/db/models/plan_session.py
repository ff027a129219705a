"""Planned study session ORM model."""
from __future__ import annotations

from sqlalchemy import BigInteger, Column, Date, DateTime, Float, ForeignKey, Index, Text, Time
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class PlanSessionRecord(Base):
    __tablename__ = "plan_sessions"
    __table_args__ = (
        Index("ix_plan_sessions_user_day", "user_id", "scheduled_day"),
        Index("ix_plan_sessions_milestone", "user_id", "assessment_title", "milestone_title"),
    )

    id = Column(Text, primary_key=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    assessment_title = Column(Text, nullable=False)
    assessment_due_date = Column(Date, nullable=False)
    milestone_title = Column(Text, nullable=False)
    subtask_title = Column(Text, nullable=False)
    scheduled_day = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_hours = Column(Float, nullable=False)
    # Stored as free text; legacy spellings are normalized on read.
    status = Column(Text, nullable=False, default="planned")
    notes = Column(Text, nullable=True)
    risk_level = Column(Text, nullable=False, default="on-track")
    version = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    blocked_by = Column(Text, nullable=True)
    rolled_from_date = Column(Date, nullable=True)
