"""SQLModel-backed storage facade for the task log."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from refinery.tasklog.models import LockKey, TaskLogEntry, TaskLogStatus
from refinery.tasklog.storage.alembic_runner import upgrade_head
from refinery.tasklog.storage.common import (
    build_sqlite_engine,
    connect_sqlite_with_policy,
    to_db_datetime,
    to_utc_aware,
)
from refinery.tasklog.storage.sqlmodel_models import TaskLogRow


class TaskLogRepository:
    """Persistence facade for `task_log` rows backed by SQLModel + SQLite."""

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

        # Keep low-level connection for tests and ad-hoc debugging queries.
        self._connection = connect_sqlite_with_policy(
            db_path=db_path,
            busy_timeout_ms=busy_timeout_ms,
        )

    def close(self) -> None:
        """Close underlying DB resources."""

        self._connection.close()
        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations up to head."""

        upgrade_head(self.db_path)

    def insert_running(self, key: LockKey, *, created_at: datetime) -> TaskLogEntry | None:
        """Insert a running entry, or return None if one already exists for the key."""

        with Session(self.engine) as session:
            row = TaskLogRow(
                task=key.task,
                params=key.params,
                hostname=key.hostname,
                status=TaskLogStatus.RUNNING.value,
                created_at=to_db_datetime(created_at),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return None
            session.refresh(row)
            return _to_entry(row)

    def latest_entry(self, key: LockKey) -> TaskLogEntry | None:
        """Most recent entry for the lock key, by id."""

        with Session(self.engine) as session:
            row = session.exec(
                select(TaskLogRow)
                .where(
                    TaskLogRow.task == key.task,
                    TaskLogRow.params == key.params,
                    TaskLogRow.hostname == key.hostname,
                )
                .order_by(col(TaskLogRow.id).desc())
                .limit(1),
            ).one_or_none()
            return _to_entry(row) if row is not None else None

    def get_entry(self, entry_id: int) -> TaskLogEntry | None:
        with Session(self.engine) as session:
            row = session.get(TaskLogRow, entry_id)
            return _to_entry(row) if row is not None else None

    def finish_entry(
        self,
        entry_id: int,
        status: TaskLogStatus,
        *,
        finish_at: datetime,
        error_message: str | None = None,
    ) -> bool:
        """Move a running entry to a terminal status.

        The update is conditional on the row still being `running`, so an entry
        already closed by a stale-lock reclaim is left untouched and the call
        returns False.
        """

        if status == TaskLogStatus.RUNNING:
            raise ValueError("finish_entry requires a terminal status")

        with Session(self.engine) as session:
            result = session.exec(
                sa_update(TaskLogRow)
                .where(
                    col(TaskLogRow.id) == entry_id,
                    col(TaskLogRow.status) == TaskLogStatus.RUNNING.value,
                )
                .values(
                    status=status.value,
                    finish_at=to_db_datetime(finish_at),
                    error_message=error_message,
                ),
            )
            session.commit()
            return result.rowcount == 1

    def list_recent(
        self,
        *,
        limit: int,
        task: str | None = None,
        status: TaskLogStatus | None = None,
    ) -> list[TaskLogEntry]:
        with Session(self.engine) as session:
            statement = select(TaskLogRow)
            if task is not None:
                statement = statement.where(TaskLogRow.task == task)
            if status is not None:
                statement = statement.where(TaskLogRow.status == status.value)
            rows = session.exec(
                statement.order_by(col(TaskLogRow.id).desc()).limit(limit),
            ).all()
            return [_to_entry(row) for row in rows]


def _to_entry(row: TaskLogRow) -> TaskLogEntry:
    if row.id is None:
        raise RuntimeError("Task log row has no id; was it flushed?")
    return TaskLogEntry(
        id=row.id,
        task=row.task,
        params=row.params,
        hostname=row.hostname,
        status=TaskLogStatus(row.status),
        created_at=to_utc_aware(row.created_at),
        finish_at=to_utc_aware(row.finish_at) if row.finish_at is not None else None,
        error_message=row.error_message,
    )
