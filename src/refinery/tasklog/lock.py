"""Run lock on top of the task log: a persisted lease with timeout reclaim."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from refinery.tasklog.models import (
    STALE_TIMEOUT_MESSAGE,
    LockKey,
    TaskLease,
    TaskLogEntry,
    TaskLogStatus,
)
from refinery.tasklog.repository import TaskLogRepository
from refinery.tasklog.storage.common import utc_now

logger = logging.getLogger(__name__)
DEFAULT_STALE_AFTER = timedelta(minutes=15)
_MAX_ACQUIRE_ATTEMPTS = 5


class TaskLockManager:
    """Serializes runs of the same lock key across processes.

    Mutual exclusion comes from the partial unique index on running rows: the
    insert either wins or hits the constraint. On conflict the current holder
    is inspected; a holder older than ``stale_after`` is closed as an error
    (compare-and-set on ``status = 'running'``) and the insert is retried, so
    a reclaiming process leaves holding a fresh lease.
    """

    def __init__(
        self,
        repository: TaskLogRepository,
        *,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if stale_after.total_seconds() <= 0:
            raise ValueError("stale_after must be > 0")
        self._repository = repository
        self._stale_after = stale_after
        self._clock = clock

    def acquire(self, key: LockKey) -> TaskLease | None:
        """Return a lease for the key, or None if a live run already holds it."""

        for _ in range(_MAX_ACQUIRE_ATTEMPTS):
            now = self._clock()
            entry = self._repository.insert_running(key, created_at=now)
            if entry is not None:
                logger.info(
                    "Task lock acquired (task=%s hostname=%s entry_id=%s).",
                    key.task,
                    key.hostname,
                    entry.id,
                )
                return TaskLease(entry_id=entry.id, key=key)

            holder = self._repository.latest_entry(key)
            if holder is None or holder.status != TaskLogStatus.RUNNING:
                # Holder finished between our insert and read.
                continue

            if not self.is_stale(holder, now=now):
                logger.info(
                    "Task lock busy (task=%s hostname=%s entry_id=%s created_at=%s).",
                    key.task,
                    key.hostname,
                    holder.id,
                    holder.created_at.isoformat(),
                )
                return None

            reclaimed = self._repository.finish_entry(
                holder.id,
                TaskLogStatus.ERROR,
                finish_at=now,
                error_message=STALE_TIMEOUT_MESSAGE,
            )
            if reclaimed:
                logger.warning(
                    "Reclaimed stale task lock and starting a new run "
                    "(task=%s hostname=%s stale_entry_id=%s created_at=%s).",
                    key.task,
                    key.hostname,
                    holder.id,
                    holder.created_at.isoformat(),
                )

        raise RuntimeError(
            f"Could not acquire task lock after {_MAX_ACQUIRE_ATTEMPTS} attempts "
            f"(task={key.task}, hostname={key.hostname}).",
        )

    def release(self, lease: TaskLease, error: str | None = None) -> bool:
        """Record the outcome of the run holding ``lease``.

        Returns False when the entry was no longer running, which happens if
        another process reclaimed it as stale while this run was still going.
        """

        status = TaskLogStatus.ERROR if error is not None else TaskLogStatus.OK
        updated = self._repository.finish_entry(
            lease.entry_id,
            status,
            finish_at=self._clock(),
            error_message=error,
        )
        if not updated:
            logger.warning(
                "Task lock entry was already closed before release "
                "(task=%s entry_id=%s status=%s).",
                lease.key.task,
                lease.entry_id,
                status.value,
            )
        return updated

    def is_stale(self, entry: TaskLogEntry, *, now: datetime) -> bool:
        return (now - entry.created_at) > self._stale_after
