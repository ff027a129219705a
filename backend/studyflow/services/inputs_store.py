"""Storage for planner inputs: assessments, milestones and busy blocks."""
from __future__ import annotations

import logging
from typing import List, Sequence
from uuid import UUID

from sqlalchemy import asc
from sqlalchemy.orm import Session

from studyflow.api.schemas.notifications import NOTIFICATION_REASONS
from studyflow.api.schemas.planner import Assessment, BusyBlock, Milestone
from studyflow.db.models.assessment import AssessmentRecord
from studyflow.db.models.busy_block import BusyBlockRecord
from studyflow.db.models.milestone import MilestoneRecord
from studyflow.db.models.notification_state import NotificationStateRecord
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.progress_audit import ProgressAuditRecord
from studyflow.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)


def load_assessments(db: Session, user_id: UUID) -> List[Assessment]:
    rows = (
        db.query(AssessmentRecord)
        .filter(AssessmentRecord.user_id == user_id)
        .order_by(asc(AssessmentRecord.due_date), asc(AssessmentRecord.title))
        .all()
    )
    return [
        Assessment(title=row.title, due_date=row.due_date, weight=row.weight, course=row.course, notes=row.notes)
        for row in rows
    ]


def save_assessments(db: Session, user_id: UUID, assessments: Sequence[Assessment]) -> List[Assessment]:
    """Insert or update assessments keyed by title."""
    get_or_create_user(db, user_id)
    for assessment in assessments:
        row = (
            db.query(AssessmentRecord)
            .filter(AssessmentRecord.user_id == user_id, AssessmentRecord.title == assessment.title)
            .one_or_none()
        )
        if row is None:
            row = AssessmentRecord(user_id=user_id, title=assessment.title)
            db.add(row)
        row.due_date = assessment.due_date
        row.weight = assessment.weight
        row.course = assessment.course
        row.notes = assessment.notes
    db.commit()
    return load_assessments(db, user_id)


def load_milestones(db: Session, user_id: UUID) -> List[Milestone]:
    rows = (
        db.query(MilestoneRecord)
        .filter(MilestoneRecord.user_id == user_id)
        .order_by(asc(MilestoneRecord.assessment_title), asc(MilestoneRecord.target_date), asc(MilestoneRecord.created_at))
        .all()
    )
    return [
        Milestone(
            title=row.title,
            target_date=row.target_date,
            estimate_hours=row.estimate_hours,
            assessment_title=row.assessment_title,
            assessment_due_date=row.assessment_due_date,
        )
        for row in rows
    ]


def save_milestones(
    db: Session,
    user_id: UUID,
    milestones: Sequence[Milestone],
    *,
    source: str | None = None,
) -> List[Milestone]:
    """Insert or update milestones keyed by (assessment title, milestone title)."""
    get_or_create_user(db, user_id)
    for milestone in milestones:
        row = (
            db.query(MilestoneRecord)
            .filter(
                MilestoneRecord.user_id == user_id,
                MilestoneRecord.assessment_title == milestone.assessment_title,
                MilestoneRecord.title == milestone.title,
            )
            .one_or_none()
        )
        if row is None:
            row = MilestoneRecord(user_id=user_id, title=milestone.title, assessment_title=milestone.assessment_title)
            db.add(row)
        row.target_date = milestone.target_date
        row.estimate_hours = milestone.estimate_hours
        row.assessment_due_date = milestone.assessment_due_date
        row.source = source
    db.commit()
    return load_milestones(db, user_id)


def load_busy_blocks(db: Session, user_id: UUID) -> List[BusyBlock]:
    rows = (
        db.query(BusyBlockRecord)
        .filter(BusyBlockRecord.user_id == user_id)
        .order_by(asc(BusyBlockRecord.start_at))
        .all()
    )
    return [BusyBlock(id=row.id, title=row.title or "", start=row.start_at, end=row.end_at) for row in rows]


def save_busy_blocks(db: Session, user_id: UUID, blocks: Sequence[BusyBlock]) -> List[BusyBlock]:
    get_or_create_user(db, user_id)
    for block in blocks:
        if block.end <= block.start:
            raise ValueError(f"Busy block {block.id} ends before it starts")
        row = db.get(BusyBlockRecord, (block.id, user_id))
        if row is None:
            row = BusyBlockRecord(id=block.id, user_id=user_id)
            db.add(row)
        row.title = block.title
        row.start_at = block.start
        row.end_at = block.end
    db.commit()
    return load_busy_blocks(db, user_id)


def delete_busy_block(db: Session, user_id: UUID, block_id: str) -> bool:
    row = db.get(BusyBlockRecord, (block_id, user_id))
    if row is None:
        return False
    db.delete(row)
    db.commit()
    return True


def delete_milestone(db: Session, user_id: UUID, assessment_title: str, milestone_title: str) -> int:
    """Delete a milestone plus its sessions, notification states and audit rows.

    Returns the number of plan sessions removed.
    """
    deleted = (
        db.query(MilestoneRecord)
        .filter(
            MilestoneRecord.user_id == user_id,
            MilestoneRecord.assessment_title == assessment_title,
            MilestoneRecord.title == milestone_title,
        )
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise ValueError("Milestone not found")
    session_ids = _delete_sessions(
        db,
        user_id,
        PlanSessionRecord.assessment_title == assessment_title,
        PlanSessionRecord.milestone_title == milestone_title,
    )
    _delete_session_side_records(db, user_id, session_ids)
    db.commit()
    logger.info("Deleted milestone %s/%s with %s sessions", assessment_title, milestone_title, len(session_ids))
    return len(session_ids)


def delete_assessment(db: Session, user_id: UUID, title: str) -> int:
    """Delete an assessment and everything planned for it."""
    deleted = (
        db.query(AssessmentRecord)
        .filter(AssessmentRecord.user_id == user_id, AssessmentRecord.title == title)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise ValueError("Assessment not found")
    db.query(MilestoneRecord).filter(
        MilestoneRecord.user_id == user_id,
        MilestoneRecord.assessment_title == title,
    ).delete(synchronize_session=False)
    session_ids = _delete_sessions(db, user_id, PlanSessionRecord.assessment_title == title)
    _delete_session_side_records(db, user_id, session_ids)
    db.query(ProgressAuditRecord).filter(
        ProgressAuditRecord.user_id == user_id,
        ProgressAuditRecord.assessment_title == title,
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted assessment %s with %s sessions", title, len(session_ids))
    return len(session_ids)


def _delete_sessions(db: Session, user_id: UUID, *criteria) -> List[str]:
    query = db.query(PlanSessionRecord).filter(PlanSessionRecord.user_id == user_id, *criteria)
    session_ids = [row.id for row in query.all()]
    if session_ids:
        query.delete(synchronize_session=False)
    return session_ids


def _delete_session_side_records(db: Session, user_id: UUID, session_ids: List[str]) -> None:
    if not session_ids:
        return
    state_ids = [f"{session_id}:{reason}" for session_id in session_ids for reason in NOTIFICATION_REASONS]
    db.query(NotificationStateRecord).filter(
        NotificationStateRecord.user_id == user_id,
        NotificationStateRecord.id.in_(state_ids),
    ).delete(synchronize_session=False)
    db.query(ProgressAuditRecord).filter(
        ProgressAuditRecord.user_id == user_id,
        ProgressAuditRecord.session_id.in_(session_ids),
    ).delete(synchronize_session=False)
