"""Initial StudyFlow schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("timezone", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "assessments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("course", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _user_fk(),
        sa.UniqueConstraint("user_id", "title", name="uq_assessments_user_title"),
    )
    op.create_index("ix_assessments_user_id", "assessments", ["user_id"], unique=False)

    op.create_table(
        "milestones",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("estimate_hours", sa.Float(), nullable=True),
        sa.Column("assessment_title", sa.Text(), nullable=False),
        sa.Column("assessment_due_date", sa.Date(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _user_fk(),
    )
    op.create_index("ix_milestones_user_id", "milestones", ["user_id"], unique=False)
    op.create_index("ix_milestones_assessment", "milestones", ["user_id", "assessment_title"], unique=False)

    op.create_table(
        "busy_blocks",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", "user_id"),
        _user_fk(),
    )
    op.create_index("ix_busy_blocks_user_start", "busy_blocks", ["user_id", "start_at"], unique=False)

    op.create_table(
        "planner_preferences",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("daily_cap_hours", sa.Float(), nullable=True),
        sa.Column("min_session_minutes", sa.Integer(), nullable=True),
        sa.Column("max_session_minutes", sa.Integer(), nullable=True),
        sa.Column("focus_block_minutes", sa.Integer(), nullable=True),
        sa.Column("allow_weekends", sa.Boolean(), nullable=True),
        sa.Column("start_hour", sa.Integer(), nullable=True),
        sa.Column("end_hour", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _user_fk(),
    )

    op.create_table(
        "plan_sessions",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assessment_title", sa.Text(), nullable=False),
        sa.Column("assessment_due_date", sa.Date(), nullable=False),
        sa.Column("milestone_title", sa.Text(), nullable=False),
        sa.Column("subtask_title", sa.Text(), nullable=False),
        sa.Column("scheduled_day", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_hours", sa.Float(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'planned'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("risk_level", sa.Text(), nullable=False, server_default=sa.text("'on-track'")),
        sa.Column("version", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("blocked_by", sa.Text(), nullable=True),
        sa.Column("rolled_from_date", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id", "user_id"),
        _user_fk(),
    )
    op.create_index("ix_plan_sessions_user_day", "plan_sessions", ["user_id", "scheduled_day"], unique=False)
    op.create_index(
        "ix_plan_sessions_milestone",
        "plan_sessions",
        ["user_id", "assessment_title", "milestone_title"],
        unique=False,
    )

    op.create_table(
        "notification_states",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("dismissed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("snoozed_until", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", "user_id"),
        _user_fk(),
    )
    op.create_index("ix_notification_states_session_id", "notification_states", ["session_id"], unique=False)

    op.create_table(
        "progress_audit",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=True),
        sa.Column("session_title", sa.Text(), nullable=True),
        sa.Column("assessment_title", sa.Text(), nullable=True),
        sa.Column("before_status", sa.Text(), nullable=True),
        sa.Column("after_status", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _user_fk(),
    )
    op.create_index("ix_progress_audit_user_id", "progress_audit", ["user_id"], unique=False)
    op.create_index("ix_progress_audit_session", "progress_audit", ["user_id", "session_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_progress_audit_session", table_name="progress_audit")
    op.drop_index("ix_progress_audit_user_id", table_name="progress_audit")
    op.drop_table("progress_audit")

    op.drop_index("ix_notification_states_session_id", table_name="notification_states")
    op.drop_table("notification_states")

    op.drop_index("ix_plan_sessions_milestone", table_name="plan_sessions")
    op.drop_index("ix_plan_sessions_user_day", table_name="plan_sessions")
    op.drop_table("plan_sessions")

    op.drop_table("planner_preferences")

    op.drop_index("ix_busy_blocks_user_start", table_name="busy_blocks")
    op.drop_table("busy_blocks")

    op.drop_index("ix_milestones_assessment", table_name="milestones")
    op.drop_index("ix_milestones_user_id", table_name="milestones")
    op.drop_table("milestones")

    op.drop_index("ix_assessments_user_id", table_name="assessments")
    op.drop_table("assessments")

    op.drop_table("users")
