"""Resolve a raw task string into a loaded task and method."""

from __future__ import annotations

import logging

from refinery.dispatch.catalog import TaskCatalog, TaskDefinitionError
from refinery.dispatch.finder import ModuleResolver, TaskFinder, UnknownModuleError
from refinery.dispatch.models import (
    HELP_METHOD,
    HelpRequested,
    ResolutionErrorKind,
    ResolutionFailure,
    ResolutionResult,
    ResolvedTask,
    TaskIdentifier,
)
from refinery.dispatch.naming import parse_task_identifier, suggest_name

logger = logging.getLogger(__name__)


class TaskResolver:
    """Turns ``[module::]task[:method]`` into a ResolvedTask or a typed failure."""

    def __init__(self, finder: TaskFinder, modules: ModuleResolver) -> None:
        self._finder = finder
        self._modules = modules
        self._catalog: TaskCatalog | None = None

    @property
    def catalog(self) -> TaskCatalog:
        """Catalog for the current search paths, built on first use."""

        if self._catalog is None:
            self._catalog = TaskCatalog.discover(self._finder)
        return self._catalog

    def resolve(self, raw: str, *, help_requested: bool = False) -> ResolutionResult:
        identifier = parse_task_identifier(raw)
        if identifier is None:
            return HelpRequested()

        if identifier.module is not None:
            try:
                self._modules.load_into(identifier.module, self._finder)
            except UnknownModuleError as error:
                return ResolutionFailure(
                    kind=ResolutionErrorKind.MODULE_NOT_FOUND,
                    message=str(error),
                    identifier=identifier,
                )
            # Search paths changed; rebuild on next access.
            self._catalog = None

        catalog = self.catalog
        if identifier.task not in catalog:
            return self._task_not_found(identifier, catalog)

        try:
            task = catalog.load(identifier.task)
        except TaskDefinitionError as error:
            logger.warning("Task %s could not be loaded: %s", identifier.task, error)
            return ResolutionFailure(
                kind=ResolutionErrorKind.INVALID_TASK,
                message=str(error),
                identifier=identifier,
            )

        method = identifier.method
        if (help_requested or method == HELP_METHOD) and task.has_method(HELP_METHOD):
            method = HELP_METHOD

        if not task.has_method(method):
            return ResolutionFailure(
                kind=ResolutionErrorKind.METHOD_NOT_FOUND,
                message=(
                    f'Task "{task.class_name}" does not have a command called "{method}".'
                ),
                identifier=identifier,
                available_methods=task.methods,
            )

        return ResolvedTask(identifier=identifier, task=task, method=method)

    @staticmethod
    def _task_not_found(identifier: TaskIdentifier, catalog: TaskCatalog) -> ResolutionFailure:
        suggestion = suggest_name(identifier.task, catalog.names)
        if suggestion is not None:
            return ResolutionFailure(
                kind=ResolutionErrorKind.TASK_NOT_FOUND_WITH_SUGGESTION,
                message=(
                    f'Task "{identifier.task}" does not exist. Did you mean "{suggestion}"?'
                ),
                identifier=identifier,
                suggestion=suggestion,
            )
        return ResolutionFailure(
            kind=ResolutionErrorKind.TASK_NOT_FOUND,
            message=f'Task "{identifier.task}" does not exist.',
            identifier=identifier,
        )
