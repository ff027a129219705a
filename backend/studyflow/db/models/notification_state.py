"""Notification dismiss/snooze state ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID

from studyflow.db.base import Base


class NotificationStateRecord(Base):
    __tablename__ = "notification_states"

    # "<session id>:<reason>"
    id = Column(Text, primary_key=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    session_id = Column(Text, nullable=False, index=True)
    dismissed_at = Column(DateTime(timezone=True), nullable=True)
    snoozed_until = Column(DateTime(timezone=True), nullable=True)
    # Set once the reminder has gone out through the provider.
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
