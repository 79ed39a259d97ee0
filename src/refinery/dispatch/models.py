"""Domain models for task resolution and dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_METHOD = "run"
HELP_METHOD = "help"
INIT_HOOK = "_init"


@dataclass(slots=True, frozen=True)
class TaskIdentifier:
    """Parsed ``[module::]task[:method]`` request."""

    task: str
    method: str = DEFAULT_METHOD
    module: str | None = None

    def __str__(self) -> str:
        prefix = f"{self.module}::" if self.module else ""
        return f"{prefix}{self.task}:{self.method}"


@dataclass(slots=True, frozen=True)
class TaskDescriptor:
    """Catalog entry for a discovered task file."""

    name: str
    path: Path


@dataclass(slots=True)
class LoadedTask:
    """Task definition imported from its file."""

    descriptor: TaskDescriptor
    task_class: type
    methods: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def class_name(self) -> str:
        return self.task_class.__name__

    def has_method(self, method: str) -> bool:
        return method in self.methods

    @property
    def has_init_hook(self) -> bool:
        return callable(getattr(self.task_class, INIT_HOOK, None))


class ResolutionErrorKind(str, Enum):
    """Why a task identifier could not be resolved."""

    MODULE_NOT_FOUND = "module_not_found"
    TASK_NOT_FOUND = "task_not_found"
    TASK_NOT_FOUND_WITH_SUGGESTION = "task_not_found_with_suggestion"
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_TASK = "invalid_task"


@dataclass(slots=True)
class ResolutionFailure:
    """Typed resolution error returned instead of raised."""

    kind: ResolutionErrorKind
    message: str
    identifier: TaskIdentifier | None = None
    suggestion: str | None = None
    available_methods: tuple[str, ...] = ()


@dataclass(slots=True)
class ResolvedTask:
    """Task and method ready to be invoked."""

    identifier: TaskIdentifier
    task: LoadedTask
    method: str

    @property
    def is_help(self) -> bool:
        return self.method == HELP_METHOD


@dataclass(slots=True)
class HelpRequested:
    """Resolution outcome for an empty or ``help`` task string."""


ResolutionResult = ResolvedTask | ResolutionFailure | HelpRequested


class DispatchStatus(str, Enum):
    """Outcome of one dispatcher invocation."""

    HELP = "help"
    COMPLETED = "completed"
    FAILED = "failed"
    ALREADY_RUNNING = "already_running"
    UNRESOLVED = "unresolved"


@dataclass(slots=True, frozen=True)
class DispatchContext:
    """Per-invocation inputs threaded through resolution and locking."""

    hostname: str
    params: str
    task_log_enabled: bool = False
    help_requested: bool = False


@dataclass(slots=True)
class DispatchResult:
    """What happened and which lines to show the user."""

    status: DispatchStatus
    lines: list[str] = field(default_factory=list)
    failure: ResolutionFailure | None = None
    error: str | None = None
    task_log_entry_id: int | None = None
