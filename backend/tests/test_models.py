from studyflow.db.base import Base
from studyflow.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_planner_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "planner_preferences",
        "assessments",
        "milestones",
        "busy_blocks",
        "plan_sessions",
        "notification_states",
        "progress_audit",
    }

    assert expected.issubset(table_names)


def test_session_rows_are_scoped_by_user() -> None:
    primary_key = [column.name for column in Base.metadata.tables["plan_sessions"].primary_key.columns]

    assert sorted(primary_key) == ["id", "user_id"]
