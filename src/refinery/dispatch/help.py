"""Help output listing every discoverable task and its commands."""

from __future__ import annotations

import logging

from refinery.dispatch.catalog import TaskCatalog, TaskDefinitionError
from refinery.dispatch.models import DEFAULT_METHOD

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "refinery refine"


def discover_tasks(catalog: TaskCatalog) -> dict[str, tuple[str, ...]]:
    """Task name -> public methods, skipping task files that fail to load."""

    result: dict[str, tuple[str, ...]] = {}
    for descriptor in catalog:
        try:
            result[descriptor.name] = catalog.load(descriptor.name).methods
        except TaskDefinitionError as error:
            logger.warning("Skipping task %s in help output: %s", descriptor.name, error)
    return result


def task_invocation(task: str, method: str) -> str:
    suffix = "" if method == DEFAULT_METHOD else f":{method}"
    return f"{COMMAND_PREFIX} {task}{suffix}"


def render_help(catalog: TaskCatalog) -> list[str]:
    tasks = discover_tasks(catalog)
    available = [
        f"    {task_invocation(task, method)}"
        for task, methods in tasks.items()
        for method in methods
    ]
    return [
        "",
        "Usage:",
        f"    {COMMAND_PREFIX} <taskname>",
        "",
        "Description:",
        "    Tasks are classes that can be run through the command line or set up as a cron job.",
        "",
        "Available tasks:",
        *(available or ["    (none found)"]),
    ]


def render_method_suggestions(task: str, methods: tuple[str, ...]) -> list[str]:
    """Lines shown after a missing-method error."""

    return ["", "Did you mean:", ""] + [f"{COMMAND_PREFIX} {task}:{method}" for method in methods]
