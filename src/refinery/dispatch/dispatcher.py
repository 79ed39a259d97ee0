"""Resolve, lock, invoke, record."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from refinery.dispatch.help import render_help, render_method_suggestions
from refinery.dispatch.models import (
    INIT_HOOK,
    DispatchContext,
    DispatchResult,
    DispatchStatus,
    HelpRequested,
    ResolutionErrorKind,
    ResolutionFailure,
    ResolvedTask,
)
from refinery.dispatch.resolver import TaskResolver
from refinery.tasklog.lock import TaskLockManager
from refinery.tasklog.models import LockKey, TaskLease

logger = logging.getLogger(__name__)

ALREADY_RUNNING_MESSAGE = "Task_log: Task is already running..."


class TaskDispatcher:
    """Runs one task invocation end to end.

    Resolution failures come back as ``UNRESOLVED`` results. Errors raised by
    the task itself are recorded on the lock entry and reported as ``FAILED``
    without propagating. Storage errors from the lock manager propagate.
    """

    def __init__(
        self,
        resolver: TaskResolver,
        *,
        lock_manager: TaskLockManager | None = None,
    ) -> None:
        self._resolver = resolver
        self._lock_manager = lock_manager

    def dispatch(
        self,
        raw_task: str,
        args: Sequence[str],
        context: DispatchContext,
    ) -> DispatchResult:
        resolution = self._resolver.resolve(raw_task, help_requested=context.help_requested)
        if isinstance(resolution, HelpRequested):
            return DispatchResult(
                status=DispatchStatus.HELP,
                lines=render_help(self._resolver.catalog),
            )
        if isinstance(resolution, ResolutionFailure):
            return _unresolved(resolution)
        return self._invoke(resolution, args, context)

    def _invoke(
        self,
        resolved: ResolvedTask,
        args: Sequence[str],
        context: DispatchContext,
    ) -> DispatchResult:
        lease: TaskLease | None = None
        if context.task_log_enabled and not resolved.is_help:
            if self._lock_manager is None:
                raise RuntimeError("Task log is enabled but no lock manager was configured.")
            lease = self._lock_manager.acquire(
                LockKey(
                    task=lock_task_name(resolved),
                    params=context.params,
                    hostname=context.hostname,
                ),
            )
            if lease is None:
                return DispatchResult(
                    status=DispatchStatus.ALREADY_RUNNING,
                    lines=[ALREADY_RUNNING_MESSAGE],
                )

        entry_id = lease.entry_id if lease is not None else None
        try:
            instance = resolved.task.task_class()
            if not resolved.is_help and resolved.task.has_init_hook:
                getattr(instance, INIT_HOOK)()
            returned = getattr(instance, resolved.method)(*args)
        except Exception as error:
            message = str(error) or type(error).__name__
            logger.warning("Task %s failed: %s", resolved.identifier, message)
            logger.debug("Task %s traceback", resolved.identifier, exc_info=True)
            self._release(lease, error=message)
            return DispatchResult(
                status=DispatchStatus.FAILED,
                lines=[f"Task_log: Task failed: {message}"],
                error=message,
                task_log_entry_id=entry_id,
            )
        except BaseException as error:
            # Interrupted: close the entry, then let the interruption through.
            self._release(lease, error=f"Interrupted: {type(error).__name__}")
            raise

        self._release(lease)
        return DispatchResult(
            status=DispatchStatus.COMPLETED,
            lines=[str(returned)] if returned else [],
            task_log_entry_id=entry_id,
        )

    def _release(self, lease: TaskLease | None, error: str | None = None) -> None:
        if lease is None or self._lock_manager is None:
            return
        self._lock_manager.release(lease, error=error)


def lock_task_name(resolved: ResolvedTask) -> str:
    """Task part of the lock key; module-qualified when a module was given."""

    module = resolved.identifier.module
    return f"{module}::{resolved.task.name}" if module else resolved.task.name


def _unresolved(failure: ResolutionFailure) -> DispatchResult:
    lines = [failure.message]
    identifier = failure.identifier
    if failure.kind == ResolutionErrorKind.METHOD_NOT_FOUND and identifier is not None:
        task_ref = f"{identifier.module}::{identifier.task}" if identifier.module else identifier.task
        lines.extend(render_method_suggestions(task_ref, failure.available_methods))
    return DispatchResult(status=DispatchStatus.UNRESOLVED, lines=lines, failure=failure)
