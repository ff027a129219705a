"""Schemas for derived session reminders."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

NotificationSeverity = Literal["urgent", "warning", "info"]
NotificationReason = Literal["overdue", "due-now", "due-soon", "heads-up"]

NOTIFICATION_REASONS: tuple[str, ...] = ("overdue", "due-now", "due-soon", "heads-up")


class NotificationItem(BaseModel):
    id: str
    title: str
    message: str
    due_date: date
    session_id: Optional[str] = None
    severity: NotificationSeverity
    reason: NotificationReason
    created_at: datetime


class NotificationState(BaseModel):
    id: str
    dismissed_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None
    dispatched_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    user_id: UUID
    items: List[NotificationItem]
    request_id: str


class NotificationActionRequest(BaseModel):
    user_id: UUID


class NotificationSnoozeRequest(BaseModel):
    user_id: UUID
    hours: float = Field(default=3, gt=0, le=24 * 14)


class NotificationStateResponse(BaseModel):
    user_id: UUID
    state: NotificationState
    request_id: str
