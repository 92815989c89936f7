"""Controller for the software update CLI command."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from repair_toolkit.config import Settings
from repair_toolkit.notifications import EchoNotifier, LoggingNotifier, Notifier
from repair_toolkit.orchestrator.controllers import build_invoker
from repair_toolkit.process.invoker import ProcessInvoker
from repair_toolkit.updates.exclusions import load_exclusions
from repair_toolkit.updates.sequencer import CommandRunner, UpdateRunReport, UpdateSequencer


@dataclass(slots=True)
class UpdateCommand:
    """CLI input for one update run."""

    exclusions_path: Path | None = None
    exclude: tuple[str, ...] = ()
    pause_seconds: float | None = None
    echo: Callable[[str], None] | None = None


@dataclass(slots=True)
class UpdateResult:
    """Update report to render in CLI."""

    lines: list[str]
    success: bool


class UpdateCliController:
    """Builds the sequencer from settings and renders its report."""

    def __init__(
        self,
        settings_factory: Callable[..., Settings] = Settings.from_env,
        invoker_factory: Callable[[Settings], CommandRunner] | None = None,
    ) -> None:
        self.settings_factory = settings_factory
        self.invoker_factory = invoker_factory or build_invoker

    def update(self, command: UpdateCommand) -> UpdateResult:
        settings = self.settings_factory(exclusions_path=command.exclusions_path)
        settings.validate()
        exclusions = load_exclusions(
            settings.updates.exclusions_path,
            extra=(*settings.updates.extra_exclusions, *command.exclude),
        )
        pause_seconds = (
            settings.updates.pause_seconds
            if command.pause_seconds is None
            else command.pause_seconds
        )
        notifier: Notifier = (
            EchoNotifier(command.echo) if command.echo is not None else LoggingNotifier()
        )

        invoker = self.invoker_factory(settings)
        try:
            report = UpdateSequencer(
                invoker,
                notifier=notifier,
                pause_seconds=pause_seconds,
            ).run(exclusions)
        finally:
            if isinstance(invoker, ProcessInvoker):
                invoker.shutdown()

        return UpdateResult(lines=render_update_report(report), success=report.failed_count == 0)


def render_update_report(report: UpdateRunReport) -> list[str]:
    lines = [
        "Update run:",
        f"- discovered: {len(report.discovered)}",
        f"- updated: {report.updated_count}",
        f"- failed: {report.failed_count}",
        f"- excluded: {report.excluded_count}",
    ]
    if report.results:
        lines.append("Programs:")
        for result in report.results:
            parts = [result.status.value]
            if result.reason_code not in {result.status.value, "success"}:
                parts.append(result.reason_code)
            if result.matched_pattern:
                parts.append(f"({result.matched_pattern})")
            lines.append(f"- {result.package_id}: {' '.join(parts)}")
    lines.append(report.summary)
    return lines
