"""Progress audit ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base
from studyflow.db.types import JSONBCompat


class ProgressAuditRecord(Base):
    __tablename__ = "progress_audit"
    __table_args__ = (
        Index("ix_progress_audit_user_id", "user_id"),
        Index("ix_progress_audit_session", "user_id", "session_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(Text, nullable=False)
    session_id = Column(Text, nullable=True)
    session_title = Column(Text, nullable=True)
    assessment_title = Column(Text, nullable=True)
    before_status = Column(Text, nullable=True)
    after_status = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    details = Column(JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
