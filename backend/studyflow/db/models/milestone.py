"""Milestone ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class MilestoneRecord(Base):
    __tablename__ = "milestones"
    __table_args__ = (
        Index("ix_milestones_user_id", "user_id"),
        Index("ix_milestones_assessment", "user_id", "assessment_title"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    target_date = Column(Date, nullable=True)
    estimate_hours = Column(Float, nullable=True)
    assessment_title = Column(Text, nullable=False)
    assessment_due_date = Column(Date, nullable=True)
    source = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
