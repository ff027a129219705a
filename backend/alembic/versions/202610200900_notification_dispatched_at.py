"""Record when a reminder was dispatched."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610200900"
down_revision = "202610190900"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("notification_states", sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    op.drop_column("notification_states", "dispatched_at")
