"""ORM models exposed for metadata discovery."""
from studyflow.db.models.assessment import AssessmentRecord
from studyflow.db.models.busy_block import BusyBlockRecord
from studyflow.db.models.milestone import MilestoneRecord
from studyflow.db.models.notification_state import NotificationStateRecord
from studyflow.db.models.plan_session import PlanSessionRecord
from studyflow.db.models.planner_preferences import PlannerPreferencesRecord
from studyflow.db.models.progress_audit import ProgressAuditRecord
from studyflow.db.models.user import User

__all__ = [
    "AssessmentRecord",
    "BusyBlockRecord",
    "MilestoneRecord",
    "NotificationStateRecord",
    "PlanSessionRecord",
    "PlannerPreferencesRecord",
    "ProgressAuditRecord",
    "User",
]
