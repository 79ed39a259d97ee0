from __future__ import annotations

from pathlib import Path

import allure
import pytest

from refinery.dispatch.finder import ModuleResolver, TaskFinder
from refinery.dispatch.help import discover_tasks
from refinery.dispatch.models import (
    HelpRequested,
    ResolutionErrorKind,
    ResolutionFailure,
    ResolvedTask,
    TaskIdentifier,
)
from refinery.dispatch.resolver import TaskResolver

from .task_fixtures import TaskTree, write_task

pytestmark = [
    allure.epic("Task Dispatch"),
    allure.feature("Task Resolution"),
]


def _resolved(result: object) -> ResolvedTask:
    assert isinstance(result, ResolvedTask), result
    return result


def _failure(result: object) -> ResolutionFailure:
    assert isinstance(result, ResolutionFailure), result
    return result


@pytest.mark.parametrize("raw", ["", "help", "Help"])
def test_resolve_help_keyword(resolver: TaskResolver, raw: str) -> None:
    assert isinstance(resolver.resolve(raw), HelpRequested)


def test_resolve_task_defaults_to_run(resolver: TaskResolver) -> None:
    resolved = _resolved(resolver.resolve("migrate"))
    assert resolved.task.name == "migrate"
    assert resolved.method == "run"
    assert resolved.identifier.module is None


def test_resolve_is_case_insensitive_for_task_name(resolver: TaskResolver) -> None:
    upper = _resolved(resolver.resolve("Migrate:up"))
    lower = _resolved(resolver.resolve("migrate:up"))
    assert upper.identifier == lower.identifier
    assert upper.task.descriptor == lower.task.descriptor
    assert upper.method == "up"


def test_resolve_matches_method_case_exactly(resolver: TaskResolver) -> None:
    resolved = _resolved(resolver.resolve("MIGRATE:camelCase"))
    assert resolved.method == "camelCase"

    failure = _failure(resolver.resolve("migrate:camelcase"))
    assert failure.kind == ResolutionErrorKind.METHOD_NOT_FOUND
    assert 'does not have a command called "camelcase"' in failure.message


def test_resolve_task_file_with_uppercase_name(tmp_path: Path) -> None:
    write_task(tmp_path, "SyncUsers", "class SyncUsers:\n    def run(self):\n        return 1\n")
    resolver = TaskResolver(TaskFinder([tmp_path]), ModuleResolver())

    resolved = _resolved(resolver.resolve("SyncUsers"))

    assert resolved.task.name == "syncusers"
    assert resolved.task.class_name == "SyncUsers"
    assert _resolved(resolver.resolve("syncusers")).task.descriptor == resolved.task.descriptor


def test_resolve_module_task(resolver: TaskResolver) -> None:
    resolved = _resolved(resolver.resolve("blog::publish:drafts"))
    assert resolved.identifier.module == "blog"
    assert resolved.task.name == "publish"
    assert resolved.method == "drafts"


def test_resolve_unknown_module(resolver: TaskResolver) -> None:
    failure = _failure(resolver.resolve("shop::publish"))
    assert failure.kind == ResolutionErrorKind.MODULE_NOT_FOUND
    assert failure.message == 'Module "shop" does not exist.'


def test_module_task_is_not_visible_without_module(resolver: TaskResolver) -> None:
    failure = _failure(resolver.resolve("publish"))
    assert failure.kind == ResolutionErrorKind.TASK_NOT_FOUND


def test_resolve_suggests_nearest_task(resolver: TaskResolver) -> None:
    failure = _failure(resolver.resolve("migrat"))
    assert failure.kind == ResolutionErrorKind.TASK_NOT_FOUND_WITH_SUGGESTION
    assert failure.suggestion == "migrate"
    assert failure.message == 'Task "migrat" does not exist. Did you mean "migrate"?'


def test_resolve_without_close_match(resolver: TaskResolver) -> None:
    failure = _failure(resolver.resolve("completelydifferent"))
    assert failure.kind == ResolutionErrorKind.TASK_NOT_FOUND
    assert failure.suggestion is None
    assert failure.message == 'Task "completelydifferent" does not exist.'


def test_resolve_suggestion_tie_prefers_enumeration_order(tmp_path: Path) -> None:
    write_task(tmp_path / "a", "sod", "class Sod:\n    def run(self):\n        return 1\n")
    write_task(tmp_path / "b", "seed", "class Seed:\n    def run(self):\n        return 1\n")
    resolver = TaskResolver(TaskFinder([tmp_path / "a", tmp_path / "b"]), ModuleResolver())

    failure = _failure(resolver.resolve("sed"))

    assert failure.suggestion == "sod"


def test_resolve_suggestion_with_no_tasks(tmp_path: Path) -> None:
    resolver = TaskResolver(TaskFinder([tmp_path]), ModuleResolver())
    failure = _failure(resolver.resolve("migrate"))
    assert failure.kind == ResolutionErrorKind.TASK_NOT_FOUND


def test_resolve_missing_method_lists_public_methods(resolver: TaskResolver) -> None:
    failure = _failure(resolver.resolve("generate:view"))
    assert failure == ResolutionFailure(
        kind=ResolutionErrorKind.METHOD_NOT_FOUND,
        message='Task "Generate" does not have a command called "view".',
        identifier=TaskIdentifier(task="generate", method="view"),
        available_methods=("run", "model"),
    )


@pytest.mark.parametrize(("raw", "flag"), [("migrate:help", False), ("migrate:up", True)])
def test_resolve_substitutes_help_method(resolver: TaskResolver, raw: str, flag: bool) -> None:
    resolved = _resolved(resolver.resolve(raw, help_requested=flag))
    assert resolved.method == "help"
    assert resolved.is_help


def test_help_flag_is_ignored_when_task_has_no_help(resolver: TaskResolver) -> None:
    resolved = _resolved(resolver.resolve("seed", help_requested=True))
    assert resolved.method == "run"


def test_resolve_invalid_task_definition(tmp_path: Path) -> None:
    write_task(tmp_path, "broken", "class NotBroken:\n    pass\n")
    resolver = TaskResolver(TaskFinder([tmp_path]), ModuleResolver())

    failure = _failure(resolver.resolve("broken"))

    assert failure.kind == ResolutionErrorKind.INVALID_TASK


def test_help_listing_agrees_with_resolution(task_tree: TaskTree) -> None:
    write_task(
        task_tree.app_path,
        "report",
        "class Report:\n    def run(self):\n        return 1\n\n    def sendAll(self):\n        return 2\n",
    )
    write_task(
        task_tree.app_path,
        "SyncUsers",
        "class SyncUsers:\n    def run(self):\n        return 1\n",
    )
    listing_resolver = TaskResolver(TaskFinder([task_tree.app_path]), ModuleResolver())
    listed = discover_tasks(listing_resolver.catalog)
    assert set(listed) == {"migrate", "generate", "seed", "report", "syncusers"}
    assert "sendAll" in listed["report"]

    for task, methods in listed.items():
        for method in methods:
            resolver = TaskResolver(TaskFinder([task_tree.app_path]), ModuleResolver())
            resolved = _resolved(resolver.resolve(f"{task}:{method}"))
            assert resolved.task.name == task
            assert resolved.method == method
