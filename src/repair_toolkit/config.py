"""Runtime configuration for the task executor, process invoker and updates."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from repair_toolkit.orchestrator.executor import DEFAULT_MAX_WORKERS
from repair_toolkit.process.invoker import DEFAULT_ASYNC_WORKERS
from repair_toolkit.updates.sequencer import DEFAULT_PAUSE_SECONDS


@dataclass(slots=True)
class ExecutorSettings:
    """Task executor settings."""

    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass(slots=True)
class ProcessSettings:
    """Child process settings.

    Empty shell prefixes mean the platform default.
    """

    shell_argv: tuple[str, ...] = ()
    powershell_argv: tuple[str, ...] = ()
    encoding: str = "utf-8"
    async_workers: int = DEFAULT_ASYNC_WORKERS
    echo_output: bool = False


@dataclass(slots=True)
class UpdateSettings:
    """Software update run settings."""

    pause_seconds: float = DEFAULT_PAUSE_SECONDS
    exclusions_path: Path = Path("programs.json")
    extra_exclusions: tuple[str, ...] = ()


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    process: ProcessSettings = field(default_factory=ProcessSettings)
    updates: UpdateSettings = field(default_factory=UpdateSettings)

    @classmethod
    def from_env(cls, exclusions_path: Path | None = None) -> Settings:
        """Load settings from ``REPAIR_TOOLKIT_*`` environment variables."""

        return cls(
            executor=ExecutorSettings(
                max_workers=_env_int("REPAIR_TOOLKIT_MAX_WORKERS", DEFAULT_MAX_WORKERS),
            ),
            process=ProcessSettings(
                shell_argv=_env_argv("REPAIR_TOOLKIT_SHELL"),
                powershell_argv=_env_argv("REPAIR_TOOLKIT_POWERSHELL"),
                encoding=os.getenv("REPAIR_TOOLKIT_ENCODING", "utf-8").strip() or "utf-8",
                async_workers=_env_int("REPAIR_TOOLKIT_ASYNC_WORKERS", DEFAULT_ASYNC_WORKERS),
                echo_output=_env_bool("REPAIR_TOOLKIT_ECHO_OUTPUT", False),
            ),
            updates=UpdateSettings(
                pause_seconds=_env_float(
                    "REPAIR_TOOLKIT_UPDATE_PAUSE_SECONDS",
                    DEFAULT_PAUSE_SECONDS,
                ),
                exclusions_path=exclusions_path
                or Path(os.getenv("REPAIR_TOOLKIT_EXCLUSIONS_PATH", "programs.json")),
                extra_exclusions=_env_csv("REPAIR_TOOLKIT_EXCLUDED_PROGRAMS"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error naming the offending variable."""

        if self.executor.max_workers <= 0:
            raise ValueError("REPAIR_TOOLKIT_MAX_WORKERS must be > 0.")
        if self.process.async_workers <= 0:
            raise ValueError("REPAIR_TOOLKIT_ASYNC_WORKERS must be > 0.")
        if self.updates.pause_seconds < 0:
            raise ValueError("REPAIR_TOOLKIT_UPDATE_PAUSE_SECONDS must be >= 0.")
        if not self.process.encoding:
            raise ValueError("REPAIR_TOOLKIT_ENCODING must not be empty.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid number value for {name}: {raw!r}") from error


def _env_csv(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return ()
    deduped: list[str] = []
    for part in raw.split(","):
        value = part.strip()
        if value and value not in deduped:
            deduped.append(value)
    return tuple(deduped)


def _env_argv(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return ()
    return tuple(shlex.split(raw, posix=os.name != "nt"))


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
