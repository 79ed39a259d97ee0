"""Task file discovery and module path resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

TASKS_DIRNAME = "tasks"
TASK_FILE_SUFFIX = ".py"


class UnknownModuleError(LookupError):
    """Raised when a module name does not map to a module directory."""

    def __init__(self, module: str) -> None:
        super().__init__(f'Module "{module}" does not exist.')
        self.module = module


class TaskFinder:
    """Ordered list of search paths, each holding a ``tasks/`` directory.

    Earlier paths win when the same task name exists in several of them.
    """

    def __init__(self, paths: Iterable[Path] = ()) -> None:
        self._paths: list[Path] = []
        for path in paths:
            self.add_path(path)

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def add_path(self, path: Path, *, position: int | None = None) -> None:
        """Register a search path; ``position`` follows ``list.insert`` semantics."""

        resolved = path.resolve()
        if resolved in self._paths:
            self._paths.remove(resolved)
        if position is None:
            self._paths.append(resolved)
        else:
            self._paths.insert(position, resolved)

    def list_files(self) -> list[Path]:
        """All task files, grouped by search path order then sorted by name."""

        files: list[Path] = []
        for path in self._paths:
            tasks_dir = path / TASKS_DIRNAME
            if not tasks_dir.is_dir():
                continue
            files.extend(
                sorted(
                    item
                    for item in tasks_dir.iterdir()
                    if item.is_file()
                    and item.suffix == TASK_FILE_SUFFIX
                    and not item.name.startswith("_")
                ),
            )
        return files


class ModuleResolver:
    """Maps module names to directories under the configured module roots."""

    def __init__(self, roots: Iterable[Path] = ()) -> None:
        self._roots = tuple(roots)

    def resolve(self, module: str) -> Path:
        if not module or module in {".", ".."} or "/" in module or "\\" in module:
            raise UnknownModuleError(module)
        for root in self._roots:
            candidate = root / module
            if candidate.is_dir():
                logger.debug("Resolved module %s to %s.", module, candidate)
                return candidate
        raise UnknownModuleError(module)

    def load_into(self, module: str, finder: TaskFinder) -> Path:
        """Resolve ``module`` and put its path first in ``finder``."""

        path = self.resolve(module)
        finder.add_path(path, position=0)
        return path
