"""Controllers for task dispatch CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from refinery.config import Settings
from refinery.dispatch.dispatcher import TaskDispatcher
from refinery.dispatch.finder import ModuleResolver, TaskFinder
from refinery.dispatch.help import render_help
from refinery.dispatch.models import DispatchContext, DispatchResult
from refinery.dispatch.resolver import TaskResolver
from refinery.tasklog.lock import TaskLockManager
from refinery.tasklog.models import TaskLogStatus
from refinery.tasklog.repository import TaskLogRepository


@dataclass(slots=True)
class RefineCommand:
    """CLI inputs for running a task."""

    db_path: Path | None
    task: str
    args: tuple[str, ...]
    task_help: bool = False


@dataclass(slots=True)
class TaskListCommand:
    """CLI inputs for listing available tasks."""

    db_path: Path | None


@dataclass(slots=True)
class TaskLogCommand:
    """CLI inputs for task log inspection."""

    db_path: Path | None
    task: str | None
    status: str | None
    limit: int


class RefineCliController:
    """Coordinates task dispatch command execution."""

    def refine(self, command: RefineCommand) -> DispatchResult:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()
        resolver = _resolver(settings)
        context = DispatchContext(
            hostname=settings.task_log.hostname,
            params=json.dumps(list(command.args)),
            task_log_enabled=settings.task_log.enabled,
            help_requested=command.task_help,
        )
        if not settings.task_log.enabled:
            return TaskDispatcher(resolver).dispatch(command.task, command.args, context)

        with _repository(settings) as repository:
            lock_manager = TaskLockManager(
                repository,
                stale_after=timedelta(seconds=settings.task_log.stale_after_seconds),
            )
            return TaskDispatcher(resolver, lock_manager=lock_manager).dispatch(
                command.task,
                command.args,
                context,
            )

    def list_tasks(self, command: TaskListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()
        return render_help(_resolver(settings).catalog)

    def task_log(self, command: TaskLogCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status = TaskLogStatus(command.status) if command.status is not None else None
        with _repository(settings) as repository:
            entries = repository.list_recent(
                limit=command.limit,
                task=command.task,
                status=status,
            )

        if not entries:
            return ["No task log entries found."]

        lines = [f"Task log entries: {len(entries)}"]
        for entry in entries:
            finish_at = entry.finish_at.isoformat() if entry.finish_at is not None else "-"
            lines.append(
                f"  {entry.id} task={entry.task} status={entry.status.value} "
                f"hostname={entry.hostname} params={entry.params} "
                f"created={entry.created_at.isoformat()} finished={finish_at} "
                f"error={entry.error_message or '-'}",
            )
        return lines


def _resolver(settings: Settings) -> TaskResolver:
    return TaskResolver(
        TaskFinder(settings.discovery.task_paths),
        ModuleResolver(settings.discovery.module_paths),
    )


@contextmanager
def _repository(settings: Settings) -> Iterator[TaskLogRepository]:
    repository = TaskLogRepository(
        settings.db_path,
        busy_timeout_ms=settings.task_log.busy_timeout_ms,
    )
    try:
        repository.init_schema()
        yield repository
    finally:
        repository.close()
