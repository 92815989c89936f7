"""Serial software-update run: discover, filter, update each, report."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from repair_toolkit.notifications import LoggingNotifier, NotificationLevel, Notifier
from repair_toolkit.process.base import CommandOutput, ProcessHandle, ShellKind
from repair_toolkit.process.failure_classifier import classify_command_output
from repair_toolkit.updates.commands import WINGET_COMMANDS, PackageManagerCommands
from repair_toolkit.updates.exclusions import ExclusionSet

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_SECONDS = 3.0

CHECKING_MESSAGE = "Checking for outdated programs..."
NOTHING_OUTDATED_MESSAGE = "No outdated programs found."
ALL_UP_TO_DATE_MESSAGE = "All programs are up to date."


class CommandRunner(Protocol):
    """Subset of ``ProcessInvoker`` the sequencer drives."""

    def run_command(
        self,
        command: str,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> ProcessHandle: ...

    def get_command_output(
        self,
        command: str,
        display: bool = False,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> CommandOutput: ...


class PackageUpdateStatus(str, Enum):
    UPDATED = "updated"
    FAILED = "failed"
    EXCLUDED = "excluded"


@dataclass(slots=True, frozen=True)
class PackageUpdateResult:
    package_id: str
    status: PackageUpdateStatus
    reason_code: str
    matched_pattern: str | None = None
    exit_code: int | None = None


@dataclass(slots=True)
class UpdateLedger:
    """Append-only record of every package id the run has handled."""

    _ids: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, package_id: str) -> None:
        with self._lock:
            self._ids.append(package_id)

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __contains__(self, package_id: object) -> bool:
        with self._lock:
            return package_id in self._ids


@dataclass(slots=True, frozen=True)
class UpdateRunReport:
    discovered: tuple[str, ...]
    excluded: tuple[str, ...]
    results: tuple[PackageUpdateResult, ...]
    ledger: tuple[str, ...]
    summary: str

    @property
    def excluded_count(self) -> int:
        return self._count(PackageUpdateStatus.EXCLUDED)

    @property
    def updated_count(self) -> int:
        return self._count(PackageUpdateStatus.UPDATED)

    @property
    def failed_count(self) -> int:
        return self._count(PackageUpdateStatus.FAILED)

    @property
    def complete(self) -> bool:
        return len(self.ledger) == len(self.discovered)

    def _count(self, status: PackageUpdateStatus) -> int:
        return sum(1 for result in self.results if result.status == status)


def split_excluded(
    package_ids: Iterable[str],
    exclusions: ExclusionSet,
) -> tuple[list[str], list[tuple[str, str]]]:
    """Partition ids into ``(remaining, [(excluded_id, matching_entry), ...])``.

    Order is preserved on both sides. An empty exclusion set keeps every id.
    """

    remaining: list[str] = []
    excluded: list[tuple[str, str]] = []
    for package_id in package_ids:
        entry = exclusions.match(package_id) if exclusions else None
        if entry is None:
            remaining.append(package_id)
        else:
            excluded.append((package_id, entry))
    return remaining, excluded


class UpdateSequencer:
    """Upgrade every outdated package one at a time.

    Upgrades run serially because package installers contend for the same
    system state. Every discovered id ends up in the ledger, whether it was
    excluded, updated or failed.
    """

    def __init__(
        self,
        invoker: CommandRunner,
        *,
        notifier: Notifier | None = None,
        commands: PackageManagerCommands = WINGET_COMMANDS,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if pause_seconds < 0:
            raise ValueError("pause_seconds must be >= 0.")
        self.invoker = invoker
        self.notifier = notifier or LoggingNotifier()
        self.commands = commands
        self.pause_seconds = pause_seconds
        self.sleep = sleep

    def run(self, exclusions: ExclusionSet | None = None) -> UpdateRunReport:
        exclusions = exclusions or ExclusionSet()
        ledger = UpdateLedger()

        discovered = self.discover()
        if not discovered:
            self._notify(NOTHING_OUTDATED_MESSAGE)
            return UpdateRunReport(
                discovered=(),
                excluded=(),
                results=(),
                ledger=ledger.snapshot(),
                summary=NOTHING_OUTDATED_MESSAGE,
            )

        remaining, excluded = split_excluded(discovered, exclusions)
        results: list[PackageUpdateResult] = []
        for package_id, entry in excluded:
            logger.info("Skipping excluded program %s (matched %s)", package_id, entry)
            ledger.record(package_id)
            results.append(
                PackageUpdateResult(
                    package_id=package_id,
                    status=PackageUpdateStatus.EXCLUDED,
                    reason_code="excluded",
                    matched_pattern=entry,
                )
            )

        if remaining:
            self._notify(
                "Please close these programs before they are updated: " + ", ".join(remaining),
                level=NotificationLevel.WARNING,
            )

        for position, package_id in enumerate(remaining):
            if position:
                self.sleep(self.pause_seconds)
            result = self._update_one(package_id)
            ledger.record(package_id)
            results.append(result)

        summary = NOTHING_OUTDATED_MESSAGE if not remaining else ALL_UP_TO_DATE_MESSAGE
        report = UpdateRunReport(
            discovered=tuple(discovered),
            excluded=tuple(package_id for package_id, _ in excluded),
            results=tuple(results),
            ledger=ledger.snapshot(),
            summary=summary,
        )
        logger.info(
            "Update run finished: discovered=%d updated=%d failed=%d excluded=%d",
            len(report.discovered),
            report.updated_count,
            report.failed_count,
            report.excluded_count,
        )
        self._notify(summary)
        return report

    def discover(self) -> list[str]:
        """Install prerequisites and list the ids of outdated packages."""

        self._notify(CHECKING_MESSAGE)
        for command in self.commands.prerequisites:
            handle = self.invoker.run_command(command, shell=self.commands.shell)
            if handle.exit_code not in (None, 0):
                logger.warning("Prerequisite exited with code %s: %s", handle.exit_code, command)

        output = self.invoker.get_command_output(
            self.commands.list_outdated,
            shell=self.commands.shell,
        )
        if output.error is not None or (
            output.exit_code is not None
            and output.exit_code not in self.commands.success_exit_codes
        ):
            logger.warning(
                "Listing outdated programs failed (exit_code=%s error=%s): %s",
                output.exit_code,
                output.error,
                output.text,
            )
            return []

        package_ids: list[str] = []
        for line in output:
            package_id = line.strip()
            if package_id and package_id not in package_ids:
                package_ids.append(package_id)
        logger.info("Discovered %d outdated programs", len(package_ids))
        return package_ids

    def _update_one(self, package_id: str) -> PackageUpdateResult:
        try:
            self._notify(f"Updating program: {package_id}")
            output = self.invoker.get_command_output(
                self.commands.upgrade_command(package_id),
                shell=self.commands.shell,
            )
            classification = classify_command_output(
                output,
                failure_phrases=self.commands.failure_phrases,
                success_exit_codes=self.commands.success_exit_codes,
            )
        except Exception:
            logger.exception("Update step crashed for %s", package_id)
            self._notify(
                f"Failed to update program: {package_id}",
                level=NotificationLevel.ERROR,
            )
            return PackageUpdateResult(
                package_id=package_id,
                status=PackageUpdateStatus.FAILED,
                reason_code="sequencer_error",
            )

        if classification.failed:
            logger.warning(
                "Update of %s failed: %s",
                package_id,
                classification.to_details(),
            )
            self._notify(
                f"Failed to update program: {package_id}",
                level=NotificationLevel.ERROR,
            )
            status = PackageUpdateStatus.FAILED
        else:
            self._notify(f"Updated program: {package_id}")
            status = PackageUpdateStatus.UPDATED

        return PackageUpdateResult(
            package_id=package_id,
            status=status,
            reason_code=classification.reason_code,
            matched_pattern=classification.matched_pattern,
            exit_code=classification.exit_code,
        )

    def _notify(self, message: str, *, level: NotificationLevel = NotificationLevel.INFO) -> None:
        try:
            self.notifier.notify(message, level=level)
        except Exception:
            logger.exception("Notification failed: %s", message)
