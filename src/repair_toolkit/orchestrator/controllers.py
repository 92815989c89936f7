"""Controllers for process and batch CLI commands."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from repair_toolkit.config import Settings
from repair_toolkit.notifications import ProgressCallback
from repair_toolkit.orchestrator.executor import TaskExecutor
from repair_toolkit.orchestrator.maintenance import MaintenanceStep, run_maintenance
from repair_toolkit.orchestrator.models import Task, TaskOutcome
from repair_toolkit.process.base import ProcessInvocation, ShellKind
from repair_toolkit.process.invoker import LineSink, ProcessInvoker


@dataclass(slots=True)
class RunCommand:
    """CLI input for a fire-and-wait command run."""

    command: str
    async_: bool = False
    powershell: bool = False


@dataclass(slots=True)
class OutputCommand:
    """CLI input for a captured command run."""

    command: str
    display: bool = False
    powershell: bool = False
    line_sink: LineSink | None = None


@dataclass(slots=True)
class BatchCommand:
    """CLI input for a parallel batch of shell commands."""

    commands: tuple[str, ...]
    preflight: tuple[str, ...] = ()
    powershell: bool = False
    progress: ProgressCallback | None = None


@dataclass(slots=True)
class CommandResult:
    """Report to render in CLI."""

    lines: list[str]
    success: bool


class CommandFailedError(RuntimeError):
    """A batch command exited with a non-zero code or could not start."""


class ProcessCliController:
    """Coordinates direct command runs and parallel batches."""

    def __init__(self, settings_factory: Callable[[], Settings] = Settings.from_env) -> None:
        self.settings_factory = settings_factory

    def run(self, command: RunCommand) -> CommandResult:
        settings = self._settings()
        with _invoker(settings) as invoker:
            handle = invoker.invoke(
                ProcessInvocation(
                    command=command.command,
                    shell=_shell(command),
                    async_=command.async_,
                ),
            )
            output = handle.result()

        lines = [f"Exit code: {_format_exit(output.exit_code)}"]
        if output.error is not None:
            lines.append(f"Error: {output.error}")
        return CommandResult(lines=lines, success=output.error is None and output.exit_code == 0)

    def output(self, command: OutputCommand) -> CommandResult:
        settings = self._settings()
        display = command.display or settings.process.echo_output
        with _invoker(settings, line_sink=command.line_sink) as invoker:
            output = invoker.invoke(
                ProcessInvocation(
                    command=command.command,
                    shell=_shell(command),
                    capture=True,
                    display=display,
                ),
            ).result()

        lines = [] if display else list(output)
        if output.error is not None:
            lines.append(f"Error: {output.error}")
        lines.append(f"Exit code: {_format_exit(output.exit_code)}")
        return CommandResult(lines=lines, success=output.error is None and output.exit_code == 0)

    def batch(self, command: BatchCommand) -> CommandResult:
        settings = self._settings()
        shell = ShellKind.POWERSHELL if command.powershell else ShellKind.COMMAND
        with (
            _invoker(settings) as invoker,
            TaskExecutor(max_workers=settings.executor.max_workers) as executor,
        ):
            report = run_maintenance(
                [
                    MaintenanceStep(
                        name=item,
                        action=_command_task(invoker, item, shell),
                        progress_key=item,
                    )
                    for item in command.commands
                ],
                executor=executor,
                progress=command.progress,
                preflight=[
                    MaintenanceStep(name=item, action=_command_task(invoker, item, shell))
                    for item in command.preflight
                ],
            )

        lines = ["Maintenance run:"]
        if report.preflight:
            preflight_failed = sum(1 for outcome in report.preflight if not outcome.ok)
            lines.append(f"- preflight: {len(report.preflight)} (failed={preflight_failed})")
        lines.append(
            f"- tasks: {report.batch.total} "
            f"(succeeded={report.batch.succeeded} failed={report.batch.failed})",
        )
        failures = [outcome for outcome in report.preflight if not outcome.ok]
        failures.extend(report.batch.failures())
        if failures:
            lines.append("Failures:")
            lines.extend(_format_failure(outcome) for outcome in failures)
        return CommandResult(lines=lines, success=report.ok)

    def _settings(self) -> Settings:
        settings = self.settings_factory()
        settings.validate()
        return settings


def build_invoker(settings: Settings, *, line_sink: LineSink | None = None) -> ProcessInvoker:
    return ProcessInvoker(
        shell_argv=settings.process.shell_argv or None,
        powershell_argv=settings.process.powershell_argv or None,
        line_sink=line_sink,
        encoding=settings.process.encoding,
        max_async_workers=settings.process.async_workers,
    )


@contextmanager
def _invoker(settings: Settings, *, line_sink: LineSink | None = None) -> Iterator[ProcessInvoker]:
    invoker = build_invoker(settings, line_sink=line_sink)
    try:
        yield invoker
    finally:
        invoker.shutdown()


def _command_task(invoker: ProcessInvoker, command: str, shell: ShellKind) -> Task:
    def _run() -> None:
        output = invoker.run_command(command, shell=shell).result()
        if output.error is not None:
            raise CommandFailedError(output.error)
        if output.exit_code != 0:
            raise CommandFailedError(f"exit code {output.exit_code}")

    return _run


def _shell(command: RunCommand | OutputCommand) -> ShellKind:
    return ShellKind.POWERSHELL if command.powershell else ShellKind.COMMAND


def _format_exit(exit_code: int | None) -> str:
    return "n/a" if exit_code is None else str(exit_code)


def _format_failure(outcome: TaskOutcome) -> str:
    return f"- [{outcome.index}] {outcome.name}: {outcome.error_type}: {outcome.error}"
