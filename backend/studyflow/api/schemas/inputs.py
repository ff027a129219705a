"""Schemas for planner inputs: assessments, milestones and busy blocks."""
from __future__ import annotations

from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from studyflow.api.schemas.planner import Assessment, BusyBlock, Milestone


class AssessmentUpsertRequest(BaseModel):
    user_id: UUID
    items: List[Assessment] = Field(min_length=1)


class AssessmentListResponse(BaseModel):
    user_id: UUID
    items: List[Assessment]
    request_id: str


class MilestoneUpsertRequest(BaseModel):
    user_id: UUID
    items: List[Milestone] = Field(min_length=1)


class MilestoneListResponse(BaseModel):
    user_id: UUID
    items: List[Milestone]
    request_id: str


class MilestoneGenerateRequest(BaseModel):
    user_id: UUID
    assessment_title: str = Field(min_length=1)
    rubric_text: Optional[str] = Field(default=None, max_length=20000)
    save: bool = False


class MilestoneGenerateResponse(BaseModel):
    user_id: UUID
    milestones: List[Milestone]
    source: Literal["llm", "rule-based"]
    saved: bool
    request_id: str


class BusyBlockUpsertRequest(BaseModel):
    user_id: UUID
    items: List[BusyBlock] = Field(min_length=1)


class BusyBlockListResponse(BaseModel):
    user_id: UUID
    items: List[BusyBlock]
    request_id: str


class DeleteResponse(BaseModel):
    user_id: UUID
    deleted: bool
    sessions_removed: int = 0
    request_id: str
