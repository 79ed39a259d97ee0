"""Domain models for the task log and run lock."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

STALE_TIMEOUT_MESSAGE = "Timeout: Task was running over 15 minutes"


class TaskLogStatus(str, Enum):
    """Lifecycle states for task log entries."""

    RUNNING = "running"
    OK = "ok"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class LockKey:
    """Identifies one logical recurring job for mutual exclusion."""

    task: str
    params: str
    hostname: str


@dataclass(slots=True)
class TaskLogEntry:
    """Read model for one task invocation attempt."""

    id: int
    task: str
    params: str
    hostname: str
    status: TaskLogStatus
    created_at: datetime
    finish_at: datetime | None
    error_message: str | None

    @property
    def key(self) -> LockKey:
        return LockKey(task=self.task, params=self.params, hostname=self.hostname)


@dataclass(slots=True, frozen=True)
class TaskLease:
    """Handle to a running entry held by the current process."""

    entry_id: int
    key: LockKey
