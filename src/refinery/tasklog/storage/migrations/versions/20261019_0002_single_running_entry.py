"""Enforce a single running task log entry per lock key."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Keep the newest running row per key, mark older duplicates as errors.
    op.execute(
        sa.text(
            """
            WITH ranked AS (
                SELECT
                    id,
                    ROW_NUMBER() OVER (
                        PARTITION BY task, params, hostname
                        ORDER BY id DESC
                    ) AS rn
                FROM task_log
                WHERE status = 'running'
            )
            UPDATE task_log
            SET
                status = 'error',
                finish_at = COALESCE(finish_at, CURRENT_TIMESTAMP),
                error_message = COALESCE(
                    error_message,
                    'Auto-closed during migration: duplicate running entries.'
                )
            WHERE id IN (SELECT id FROM ranked WHERE rn > 1)
            """,
        ),
    )
    op.execute(
        sa.text(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS uq_task_log_key_running
            ON task_log (task, params, hostname)
            WHERE status = 'running'
            """,
        ),
    )


def downgrade() -> None:
    op.execute(
        sa.text(
            "DROP INDEX IF EXISTS uq_task_log_key_running",
        ),
    )
