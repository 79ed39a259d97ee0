"""Task files and helpers for building throwaway task trees."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path

MIGRATE_TASK = """
class Migrate:
    init_calls = 0

    def _init(self):
        type(self).init_calls += 1

    def run(self, *args):
        return "migrated " + " ".join(args) if args else "migrated"

    def up(self):
        return "up"

    def down(self):
        raise RuntimeError("cannot roll back")

    def quiet(self):
        return None

    def help(self):
        return "Migrate help"

    def camelCase(self):
        return "camel"

    def _private(self):
        return "hidden"
"""

GENERATE_TASK = """
class Generate:
    def run(self):
        return "generated"

    def model(self, name):
        return f"model {name}"
"""

SEED_TASK = """
class Seed:
    def run(self):
        return "seeded"
"""

PUBLISH_TASK = """
class Publish:
    def run(self):
        return "published"

    @staticmethod
    def drafts():
        return "drafts"
"""


@dataclass(slots=True)
class TaskTree:
    app_path: Path
    modules_root: Path


def write_task(base: Path, name: str, source: str) -> Path:
    tasks_dir = base / "tasks"
    tasks_dir.mkdir(parents=True, exist_ok=True)
    path = tasks_dir / f"{name}.py"
    path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
    return path
