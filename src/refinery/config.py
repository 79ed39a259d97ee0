"""Runtime configuration for task dispatch and task logging."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class TaskLogSettings:
    """Run lock / task log settings."""

    enabled: bool = False
    hostname: str = ""
    stale_after_seconds: int = 900
    busy_timeout_ms: int = 5_000


@dataclass(slots=True)
class DiscoverySettings:
    """Where task files and modules are looked up."""

    task_paths: tuple[Path, ...] = (Path("."),)
    module_paths: tuple[Path, ...] = (Path("modules"),)


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".refinery.db")
    task_log: TaskLogSettings = field(default_factory=TaskLogSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("REFINERY_DB_PATH", ".refinery.db")),
            task_log=TaskLogSettings(
                enabled=_env_bool("REFINERY_ENABLE_TASK_LOG", default=False),
                hostname=os.getenv("REFINERY_HOSTNAME", "").strip() or socket.gethostname(),
                stale_after_seconds=int(
                    os.getenv("REFINERY_TASK_LOG_STALE_AFTER_SECONDS", "900"),
                ),
                busy_timeout_ms=int(os.getenv("REFINERY_SQLITE_BUSY_TIMEOUT_MS", "5000")),
            ),
            discovery=DiscoverySettings(
                task_paths=_env_paths("REFINERY_TASK_PATHS", default=(Path("."),)),
                module_paths=_env_paths("REFINERY_MODULE_PATHS", default=(Path("modules"),)),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the dispatcher cannot work with."""

        if self.task_log.stale_after_seconds <= 0:
            raise ValueError("REFINERY_TASK_LOG_STALE_AFTER_SECONDS must be > 0.")
        if self.task_log.busy_timeout_ms <= 0:
            raise ValueError("REFINERY_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if not self.discovery.task_paths:
            raise ValueError(
                "At least one task search path is required. Set REFINERY_TASK_PATHS.",
            )


def _env_paths(name: str, default: tuple[Path, ...]) -> tuple[Path, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    paths: list[Path] = []
    seen: set[str] = set()
    for part in raw.split(os.pathsep):
        token = part.strip()
        if not token or token in seen:
            continue
        seen.add(token)
        paths.append(Path(token))
    return tuple(paths)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
