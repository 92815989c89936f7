# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field

from repair_toolkit.notifications import NotificationLevel
from repair_toolkit.process.base import CommandOutput, ProcessHandle, ShellKind


@dataclass(slots=True)
class RecordingNotifier:
    """Collects notifications in memory, in the order they were sent."""

    messages: list[tuple[NotificationLevel, str]] = field(default_factory=list)

    def notify(self, message: str, *, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.messages.append((level, message))

    @property
    def texts(self) -> list[str]:
        return [message for _, message in self.messages]


@dataclass(slots=True)
class InvokerCall:
    kind: str
    command: str
    shell: ShellKind


class FakeInvoker:
    """
    Scripted stand-in for ProcessInvoker.

    - ``outputs`` maps a command string to the CommandOutput it yields
    - an Exception value is raised instead of returned
    - unknown commands succeed with no output
    """

    def __init__(self, outputs: dict[str, CommandOutput | Exception] | None = None) -> None:
        self.outputs = dict(outputs or {})
        self.calls: list[InvokerCall] = []

    def run_command(
        self,
        command: str,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> ProcessHandle:
        self.calls.append(InvokerCall("run", command, shell))
        return ProcessHandle.resolved(command, self._output(command))

    def get_command_output(
        self,
        command: str,
        display: bool = False,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> CommandOutput:
        self.calls.append(InvokerCall("output", command, shell))
        return self._output(command)

    def commands(self, kind: str) -> list[str]:
        return [call.command for call in self.calls if call.kind == kind]

    def _output(self, command: str) -> CommandOutput:
        value = self.outputs.get(command, CommandOutput(exit_code=0))
        if isinstance(value, Exception):
            raise value
        return value
