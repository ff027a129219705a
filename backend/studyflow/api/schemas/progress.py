"""Schemas for weekly progress and the progress audit trail."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel

WeeklyStatus = Literal["on-track", "behind", "at-risk"]
ProgressAuditAction = Literal["status-change", "reschedule"]


class WeeklyProgress(BaseModel):
    week_label: str
    start_date: date
    end_date: date
    planned_hours: float
    completed_hours: float
    status: WeeklyStatus


class WeeklyProgressResponse(BaseModel):
    user_id: UUID
    weeks: List[WeeklyProgress]
    request_id: str


class ProgressAuditEntry(BaseModel):
    id: UUID
    action: ProgressAuditAction
    session_id: Optional[str]
    session_title: Optional[str]
    assessment_title: Optional[str]
    before_status: Optional[str]
    after_status: Optional[str]
    note: Optional[str]
    created_at: datetime


class ProgressAuditResponse(BaseModel):
    user_id: UUID
    items: List[ProgressAuditEntry]
    request_id: str
