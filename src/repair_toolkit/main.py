"""CLI entrypoint for repair-toolkit."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from repair_toolkit import __version__
from repair_toolkit.orchestrator.controllers import (
    BatchCommand,
    OutputCommand,
    ProcessCliController,
    RunCommand,
)
from repair_toolkit.updates.controllers import UpdateCliController, UpdateCommand

click.rich_click.USE_MARKDOWN = True
PROCESS_CONTROLLER = ProcessCliController()
UPDATE_CONTROLLER = UpdateCliController()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

CommandT = TypeVar("CommandT")
ResultT = TypeVar("ResultT")


@click.group()
@click.version_option(version=__version__, prog_name="repair-toolkit")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def repair_toolkit(log_level: str) -> None:
    """Windows maintenance toolkit: parallel tasks, shell commands, program updates."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s",
    )


@repair_toolkit.command("run")
@click.argument("command")
@click.option("--async", "async_", is_flag=True, help="Run on the background pool.")
@click.option("--powershell", is_flag=True, help="Interpret the command with PowerShell.")
def run(command: str, async_: bool, powershell: bool) -> None:
    """Run `COMMAND` through the shell and print its exit code."""

    result = _call(
        PROCESS_CONTROLLER.run,
        RunCommand(command=command, async_=async_, powershell=powershell),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Command failed.")


@repair_toolkit.command("output")
@click.argument("command")
@click.option("--display", is_flag=True, help="Echo non-blank lines while the command runs.")
@click.option("--powershell", is_flag=True, help="Interpret the command with PowerShell.")
def output(command: str, display: bool, powershell: bool) -> None:
    """Run `COMMAND` and print its merged stdout/stderr lines."""

    result = _call(
        PROCESS_CONTROLLER.output,
        OutputCommand(
            command=command,
            display=display,
            powershell=powershell,
            line_sink=click.echo,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Command failed.")


@repair_toolkit.command("batch")
@click.argument("commands", nargs=-1, required=True)
@click.option(
    "--preflight",
    multiple=True,
    help="Command to run serially before the batch. Can be repeated.",
)
@click.option("--powershell", is_flag=True, help="Interpret the commands with PowerShell.")
def batch(commands: tuple[str, ...], preflight: tuple[str, ...], powershell: bool) -> None:
    """Run `COMMANDS` in parallel and wait for all of them."""

    result = _call(
        PROCESS_CONTROLLER.batch,
        BatchCommand(
            commands=commands,
            preflight=preflight,
            powershell=powershell,
            progress=lambda key: click.echo(f"Done: {key}"),
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Some tasks failed.")


@repair_toolkit.command("update")
@click.option(
    "--exclusions",
    "exclusions_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="JSON file with excluded program ids.",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Program id or glob to skip. Can be repeated.",
)
@click.option(
    "--pause",
    "pause_seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait between program updates.",
)
def update(
    exclusions_path: Path | None,
    exclude: tuple[str, ...],
    pause_seconds: float | None,
) -> None:
    """Upgrade every outdated program except the excluded ones."""

    result = _call(
        UPDATE_CONTROLLER.update,
        UpdateCommand(
            exclusions_path=exclusions_path,
            exclude=exclude,
            pause_seconds=pause_seconds,
            echo=click.echo,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Some programs failed to update.")


def _call(handler: Callable[[CommandT], ResultT], command: CommandT) -> ResultT:
    try:
        return handler(command)
    except ValueError as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    repair_toolkit()
