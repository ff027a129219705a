"""Busy calendar block ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class BusyBlockRecord(Base):
    __tablename__ = "busy_blocks"
    __table_args__ = (Index("ix_busy_blocks_user_start", "user_id", "start_at"),)

    # Ids come from the calendar source (e.g. an ICS UID), so they are text.
    id = Column(Text, primary_key=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    title = Column(Text, nullable=False, default="")
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
