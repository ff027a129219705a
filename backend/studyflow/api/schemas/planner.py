"""Schemas shared by the planner engine and the planner endpoints."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

SessionStatus = Literal["planned", "in-progress", "completed", "todo"]
RiskLevel = Literal["on-track", "warning", "late", "at-risk"]
PlanWarningType = Literal["capacity", "deadline", "conflict", "info"]

# Older clients wrote these spellings; map them onto the closed set above.
LEGACY_STATUS_ALIASES = {
    "complete": "completed",
    "done": "completed",
    "in_progress": "in-progress",
    "inprogress": "in-progress",
    "to-do": "todo",
    "scheduled": "planned",
}


def normalize_status(value: object) -> str:
    """Return the canonical session status for a raw stored value."""
    if value is None:
        return "planned"
    text = str(value).strip().lower()
    if not text:
        return "planned"
    return LEGACY_STATUS_ALIASES.get(text, text)


def is_completed(status: str | None) -> bool:
    return normalize_status(status) == "completed"


class PlannerPreferences(BaseModel):
    daily_cap_hours: float = 4
    min_session_minutes: int = 45
    max_session_minutes: int = 105
    focus_block_minutes: int = 15
    allow_weekends: bool = False
    start_hour: int = 9
    end_hour: int = 18


class PlannerPreferencesUpdate(BaseModel):
    """Partial update payload; absent fields keep their stored value."""

    user_id: UUID
    daily_cap_hours: Optional[float] = Field(default=None, ge=0, le=24)
    min_session_minutes: Optional[int] = Field(default=None, ge=5, le=600)
    max_session_minutes: Optional[int] = Field(default=None, ge=5, le=600)
    focus_block_minutes: Optional[int] = Field(default=None, ge=0, le=240)
    allow_weekends: Optional[bool] = None
    start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    end_hour: Optional[int] = Field(default=None, ge=1, le=24)


class Assessment(BaseModel):
    title: str
    due_date: date
    weight: Optional[float] = None
    course: Optional[str] = None
    notes: Optional[str] = None


class Milestone(BaseModel):
    title: str
    target_date: Optional[date] = None
    estimate_hours: Optional[float] = None
    assessment_title: str
    assessment_due_date: Optional[date] = None


class BusyBlock(BaseModel):
    id: str
    title: str = ""
    start: datetime
    end: datetime


class PlannedSession(BaseModel):
    id: str
    assessment_title: str
    assessment_due_date: date
    milestone_title: str
    subtask_title: str
    scheduled_day: date
    start_time: time
    end_time: time
    duration_hours: float
    status: SessionStatus = "planned"
    notes: Optional[str] = None
    risk_level: RiskLevel = "on-track"
    version: int
    created_at: datetime
    updated_at: datetime
    blocked_by: Optional[str] = None
    rolled_from_date: Optional[date] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> str:
        return normalize_status(value)

    def starts_at(self) -> datetime:
        return datetime.combine(self.scheduled_day, self.start_time)


class PlanWarning(BaseModel):
    type: PlanWarningType
    message: str
    detail: Optional[str] = None
    subtask_id: Optional[str] = None


class DaySummary(BaseModel):
    day: date
    is_weekend: bool
    capacity: float
    total_hours: float
    sessions: List[PlannedSession] = Field(default_factory=list)


class PlanResult(BaseModel):
    sessions: List[PlannedSession] = Field(default_factory=list)
    days: List[DaySummary] = Field(default_factory=list)
    warnings: List[PlanWarning] = Field(default_factory=list)
    unplaced: List[PlannedSession] = Field(default_factory=list)
    version: int


class PlanRequest(BaseModel):
    user_id: UUID
    start_date: Optional[date] = None


class PlanResponse(BaseModel):
    user_id: UUID
    plan: PlanResult
    applied: bool = False
    request_id: str


class RescheduleResponse(BaseModel):
    user_id: UUID
    moved: List[PlannedSession]
    unplaced: List[PlannedSession]
    warnings: List[PlanWarning]
    sessions: List[PlannedSession]
    request_id: str


class SessionStatusUpdateRequest(BaseModel):
    user_id: UUID
    status: SessionStatus
    note: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> str:
        return normalize_status(value)


class PreferencesResponse(BaseModel):
    user_id: UUID
    preferences: PlannerPreferences
    request_id: str


class SessionListResponse(BaseModel):
    user_id: UUID
    sessions: List[PlannedSession]
    request_id: str


class SessionStatusUpdateResponse(BaseModel):
    user_id: UUID
    session: PlannedSession
    request_id: str
