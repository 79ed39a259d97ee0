"""Initial task log table."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task", sa.String(), nullable=False),
        sa.Column("params", sa.Text(), nullable=False),
        sa.Column("hostname", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finish_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_log_key", "task_log", ["task", "params", "hostname"])
    op.create_index("ix_task_log_status", "task_log", ["status"])


def downgrade() -> None:
    op.drop_index("ix_task_log_status", table_name="task_log")
    op.drop_index("ix_task_log_key", table_name="task_log")
    op.drop_table("task_log")
