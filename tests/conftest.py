"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from refinery.dispatch.finder import ModuleResolver, TaskFinder
from refinery.dispatch.resolver import TaskResolver
from refinery.tasklog.repository import TaskLogRepository

from .task_fixtures import (
    GENERATE_TASK,
    MIGRATE_TASK,
    PUBLISH_TASK,
    SEED_TASK,
    TaskTree,
    write_task,
)


@pytest.fixture()
def task_tree(tmp_path: Path) -> TaskTree:
    app_path = tmp_path / "app"
    write_task(app_path, "migrate", MIGRATE_TASK)
    write_task(app_path, "generate", GENERATE_TASK)
    write_task(app_path, "seed", SEED_TASK)

    modules_root = tmp_path / "modules"
    write_task(modules_root / "blog", "publish", PUBLISH_TASK)
    return TaskTree(app_path=app_path, modules_root=modules_root)


@pytest.fixture()
def resolver(task_tree: TaskTree) -> TaskResolver:
    return TaskResolver(
        TaskFinder([task_tree.app_path]),
        ModuleResolver([task_tree.modules_root]),
    )


@pytest.fixture()
def repository(tmp_path: Path):
    repo = TaskLogRepository(tmp_path / "task-log.db")
    repo.init_schema()
    yield repo
    repo.close()


@pytest.fixture()
def refinery_env(monkeypatch, tmp_path: Path, task_tree: TaskTree) -> Path:
    """Point Settings.from_env at the temporary task tree; returns the DB path."""

    db_path = tmp_path / "refinery.db"
    monkeypatch.setenv("REFINERY_DB_PATH", str(db_path))
    monkeypatch.setenv("REFINERY_TASK_PATHS", str(task_tree.app_path))
    monkeypatch.setenv("REFINERY_MODULE_PATHS", str(task_tree.modules_root))
    monkeypatch.setenv("REFINERY_HOSTNAME", "test-host")
    monkeypatch.delenv("REFINERY_ENABLE_TASK_LOG", raising=False)
    return db_path
