"""Registry of discovered task definitions."""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

from refinery.dispatch.finder import TaskFinder
from refinery.dispatch.models import LoadedTask, TaskDescriptor

logger = logging.getLogger(__name__)

_LOADED_MODULE_PREFIX = "refinery_tasks"


class TaskDefinitionError(RuntimeError):
    """A task file exists but does not provide a usable task class."""


def task_class_name(task_name: str) -> str:
    """``seed_users`` -> ``SeedUsers``; ``SyncUsers`` stays ``SyncUsers``."""

    return "".join(part[:1].upper() + part[1:] for part in task_name.split("_") if part)


def public_methods(task_class: type) -> tuple[str, ...]:
    """Public callables of a task class in declaration order, subclass first."""

    names: list[str] = []
    for klass in task_class.__mro__:
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or name in names:
                continue
            if inspect.isfunction(value) or isinstance(value, (staticmethod, classmethod)):
                names.append(name)
    return tuple(names)


class TaskCatalog:
    """Task descriptors keyed by name, in finder enumeration order.

    Built once per invocation from the finder; resolution and help listing
    both read from it so they agree on which tasks exist.
    """

    def __init__(self, descriptors: list[TaskDescriptor]) -> None:
        self._descriptors: dict[str, TaskDescriptor] = {}
        for descriptor in descriptors:
            # First search path wins.
            self._descriptors.setdefault(descriptor.name, descriptor)
        self._loaded: dict[str, LoadedTask] = {}

    @classmethod
    def discover(cls, finder: TaskFinder) -> TaskCatalog:
        # Requested task names are lowercased, so file stems are keyed the same way.
        return cls(
            [TaskDescriptor(name=path.stem.lower(), path=path) for path in finder.list_files()],
        )

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[TaskDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    @property
    def names(self) -> list[str]:
        return list(self._descriptors)

    def get(self, name: str) -> TaskDescriptor | None:
        return self._descriptors.get(name)

    def load(self, name: str) -> LoadedTask:
        """Import the task file and return its task class with public methods."""

        cached = self._loaded.get(name)
        if cached is not None:
            return cached

        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise KeyError(name)

        module = _import_task_file(descriptor.path)
        class_name = task_class_name(descriptor.path.stem)
        task_class = getattr(module, class_name, None)
        if not inspect.isclass(task_class):
            raise TaskDefinitionError(
                f'Task file "{descriptor.path}" does not define class "{class_name}".',
            )

        loaded = LoadedTask(
            descriptor=descriptor,
            task_class=task_class,
            methods=public_methods(task_class),
        )
        self._loaded[name] = loaded
        return loaded


def _import_task_file(path: Path) -> ModuleType:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    module_name = f"{_LOADED_MODULE_PREFIX}.{path.stem}_{digest}"
    existing = sys.modules.get(module_name)
    if existing is not None:
        return existing

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise TaskDefinitionError(f'Task file "{path}" cannot be imported.')

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as error:
        del sys.modules[module_name]
        raise TaskDefinitionError(f'Task file "{path}" failed to import: {error}') from error
    logger.debug("Loaded task file %s as %s.", path, module_name)
    return module
