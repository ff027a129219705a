"""Persistence for planned sessions and the progress audit trail."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from studyflow.api.schemas.planner import PlannedSession, SessionStatus
from studyflow.api.schemas.progress import ProgressAuditEntry
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.progress_audit import ProgressAuditRecord
from studyflow.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

SESSION_FIELDS = tuple(field for field in PlannedSession.model_fields)


def _to_session(row: PlanSessionRecord) -> PlannedSession:
    return PlannedSession.model_validate({field: getattr(row, field) for field in SESSION_FIELDS})


def _apply_to_row(row: PlanSessionRecord, session: PlannedSession) -> None:
    for field in SESSION_FIELDS:
        if field == "id":
            continue
        setattr(row, field, getattr(session, field))


def load_sessions(db: Session, user_id: UUID) -> List[PlannedSession]:
    rows = (
        db.query(PlanSessionRecord)
        .filter(PlanSessionRecord.user_id == user_id)
        .order_by(asc(PlanSessionRecord.scheduled_day), asc(PlanSessionRecord.start_time), asc(PlanSessionRecord.id))
        .all()
    )
    return [_to_session(row) for row in rows]


def replace_plan(db: Session, user_id: UUID, sessions: Sequence[PlannedSession]) -> int:
    """Swap the user's active plan for ``sessions`` in one transaction.

    Deleting first keeps sessions from removed milestones from lingering.
    """
    get_or_create_user(db, user_id)
    removed = (
        db.query(PlanSessionRecord)
        .filter(PlanSessionRecord.user_id == user_id)
        .delete(synchronize_session=False)
    )
    for session in sessions:
        row = PlanSessionRecord(id=session.id, user_id=user_id)
        _apply_to_row(row, session)
        db.add(row)
    db.commit()
    logger.info("Replaced plan: removed %s sessions, wrote %s", removed, len(sessions))
    return len(sessions)


def upsert_sessions(db: Session, user_id: UUID, sessions: Iterable[PlannedSession], *, commit: bool = True) -> int:
    count = 0
    for session in sessions:
        row = db.get(PlanSessionRecord, (session.id, user_id))
        if row is None:
            row = PlanSessionRecord(id=session.id, user_id=user_id)
            db.add(row)
        _apply_to_row(row, session)
        count += 1
    if commit:
        db.commit()
    return count


def update_session_status(
    db: Session,
    user_id: UUID,
    session_id: str,
    status: SessionStatus,
    *,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PlannedSession:
    """Change a session's status and audit the transition."""
    row = db.get(PlanSessionRecord, (session_id, user_id))
    if row is None:
        raise ValueError("Session not found")

    before = _to_session(row).status
    timestamp = now or datetime.now(timezone.utc)
    if before != status:
        row.status = status
        row.updated_at = timestamp
        record_audit(
            db,
            user_id,
            action="status-change",
            session=_to_session(row),
            before_status=before,
            after_status=status,
            note=note,
            created_at=timestamp,
        )
    db.commit()
    return _to_session(row)


def record_audit(
    db: Session,
    user_id: UUID,
    *,
    action: str,
    session: PlannedSession,
    before_status: Optional[str] = None,
    after_status: Optional[str] = None,
    note: Optional[str] = None,
    details: Optional[dict] = None,
    created_at: Optional[datetime] = None,
) -> None:
    """Queue an audit row; the caller commits."""
    db.add(
        ProgressAuditRecord(
            user_id=user_id,
            action=action,
            session_id=session.id,
            session_title=session.subtask_title,
            assessment_title=session.assessment_title,
            before_status=before_status,
            after_status=after_status,
            note=note,
            details=details,
            created_at=created_at or datetime.now(timezone.utc),
        )
    )


def list_audit(db: Session, user_id: UUID, limit: int = 50) -> List[ProgressAuditEntry]:
    rows = (
        db.query(ProgressAuditRecord)
        .filter(ProgressAuditRecord.user_id == user_id)
        .order_by(desc(ProgressAuditRecord.created_at), desc(ProgressAuditRecord.id))
        .limit(limit)
        .all()
    )
    return [
        ProgressAuditEntry(
            id=row.id,
            action=row.action,
            session_id=row.session_id,
            session_title=row.session_title,
            assessment_title=row.assessment_title,
            before_status=row.before_status,
            after_status=row.after_status,
            note=row.note,
            created_at=row.created_at,
        )
        for row in rows
    ]
