"""Value types shared by the process invoker and its callers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import overload


class ShellKind(str, Enum):
    """Shell used to interpret a command string."""

    COMMAND = "command"
    POWERSHELL = "powershell"


@dataclass(slots=True, frozen=True)
class ProcessInvocation:
    """One spawn of a shell-mediated command."""

    command: str
    shell: ShellKind = ShellKind.COMMAND
    async_: bool = False
    capture: bool = False
    display: bool = False


@dataclass(slots=True, frozen=True)
class CommandOutput(Sequence[str]):
    """Captured output lines of one process, in emission order.

    ``lines`` always holds at least one element: a process that printed
    nothing yields ``("",)``. Callers match on the text, so an empty
    sequence is never returned.
    """

    lines: tuple[str, ...] = ("",)
    exit_code: int | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.lines:
            object.__setattr__(self, "lines", ("",))

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[str],
        *,
        exit_code: int | None = None,
        error: str | None = None,
    ) -> CommandOutput:
        return cls(lines=tuple(lines), exit_code=exit_code, error=error)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[str, ...]: ...

    def __getitem__(self, index: int | slice) -> str | tuple[str, ...]:
        return self.lines[index]

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CommandOutput):
            return (
                self.lines == other.lines
                and self.exit_code == other.exit_code
                and self.error == other.error
            )
        if isinstance(other, (list, tuple)):
            return list(self.lines) == list(other)
        return NotImplemented

    def __hash__(self) -> int:
        # Compares equal to a tuple of the same lines.
        return hash(self.lines)


class ProcessHandle:
    """Completion handle for one invocation, sync or async."""

    def __init__(self, command: str, future: Future[CommandOutput]) -> None:
        self.command = command
        self._future = future

    @classmethod
    def resolved(cls, command: str, output: CommandOutput) -> ProcessHandle:
        future: Future[CommandOutput] = Future()
        future.set_result(output)
        return cls(command, future)

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> CommandOutput:
        """Block until the process has exited and return its output."""
        return self._future.result(timeout=timeout)

    def wait(self, timeout: float | None = None) -> int | None:
        """Block until the process has exited and return its exit code."""
        return self.result(timeout=timeout).exit_code

    @property
    def exit_code(self) -> int | None:
        if not self._future.done():
            return None
        return self._future.result().exit_code

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"ProcessHandle(command={self.command!r}, state={state})"
