"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["catch_up", "reminders"]
    user_id: Optional[UUID] = None


class JobRunResponse(BaseModel):
    job: str
    users_processed: int
    sessions_moved: int = 0
    reminders_sent: int = 0
    failures: int = 0
    request_id: str
