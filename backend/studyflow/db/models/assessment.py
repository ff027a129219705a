"""Assessment ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class AssessmentRecord(Base):
    __tablename__ = "assessments"
    __table_args__ = (
        Index("ix_assessments_user_id", "user_id"),
        UniqueConstraint("user_id", "title", name="uq_assessments_user_title"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    due_date = Column(Date, nullable=False)
    weight = Column(Float, nullable=True)
    course = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
