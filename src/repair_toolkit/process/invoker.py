"""Shell-mediated process invocation with optional line capture."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Literal, overload

from repair_toolkit.process.base import (
    CommandOutput,
    ProcessHandle,
    ProcessInvocation,
    ShellKind,
)

logger = logging.getLogger(__name__)

LineSink = Callable[[str], None]

DEFAULT_ASYNC_WORKERS = 8


def default_shell_argv(os_name: str | None = None) -> tuple[str, ...]:
    """Platform command shell prefix; the command string is appended last."""

    if (os_name or os.name) == "nt":
        return ("cmd.exe", "/c")
    return ("/bin/sh", "-c")


def default_powershell_argv(os_name: str | None = None) -> tuple[str, ...]:
    if (os_name or os.name) == "nt":
        return ("powershell.exe", "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command")
    return ("pwsh", "-NoProfile", "-Command")


def build_run_args(
    *,
    prefix: Sequence[str],
    command: str,
    os_name: str | None = None,
) -> str | list[str]:
    """Append ``command`` verbatim to the shell prefix.

    On Windows the command line is handed to ``CreateProcess`` as one string so
    that ``cmd.exe`` sees the caller's quoting untouched.
    """

    if (os_name or os.name) == "nt":
        return f"{subprocess.list2cmdline(list(prefix))} {command}"
    return [*prefix, command]


class ProcessInvoker:
    """Spawn one child process per command string.

    Every invocation returns a ``ProcessHandle`` (already resolved in sync mode)
    or a ``CommandOutput``. Start and read failures are logged and folded into
    the returned value; nothing is raised except an interrupt during the wait.
    """

    def __init__(
        self,
        *,
        shell_argv: Sequence[str] | None = None,
        powershell_argv: Sequence[str] | None = None,
        line_sink: LineSink | None = None,
        encoding: str = "utf-8",
        max_async_workers: int = DEFAULT_ASYNC_WORKERS,
    ) -> None:
        self.shell_argv = tuple(shell_argv or default_shell_argv())
        self.powershell_argv = tuple(powershell_argv or default_powershell_argv())
        self.line_sink = line_sink or logger.info
        self.encoding = encoding
        self.max_async_workers = max(1, max_async_workers)
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    def invoke(self, invocation: ProcessInvocation) -> ProcessHandle:
        """Dispatch one invocation described as a value."""

        if invocation.capture:
            if invocation.async_:
                return self.submit_command_output(
                    invocation.command,
                    invocation.display,
                    shell=invocation.shell,
                )
            output = self._spawn_and_capture(
                invocation.command,
                invocation.shell,
                invocation.display,
            )
            return ProcessHandle.resolved(invocation.command, output)
        return self.run_command(invocation.command, invocation.async_, shell=invocation.shell)

    def run_command(
        self,
        command: str,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> ProcessHandle:
        """Run ``command`` to completion without capturing its output."""

        if async_:
            future = self._background().submit(self._spawn_and_wait, command, shell)
            return ProcessHandle(command, future)
        return ProcessHandle.resolved(command, self._spawn_and_wait(command, shell))

    @overload
    def get_command_output(
        self,
        command: str,
        display: bool = ...,
        async_: Literal[False] = ...,
        *,
        shell: ShellKind = ...,
    ) -> CommandOutput: ...

    @overload
    def get_command_output(
        self,
        command: str,
        display: bool,
        async_: Literal[True],
        *,
        shell: ShellKind = ...,
    ) -> ProcessHandle: ...

    def get_command_output(
        self,
        command: str,
        display: bool = False,
        async_: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> CommandOutput | ProcessHandle:
        """Run ``command`` and return its merged stdout/stderr lines.

        With ``async_`` the read loop runs on the background pool and the call
        returns a ``ProcessHandle`` at once; its ``result()`` is the capture.
        """

        if async_:
            return self.submit_command_output(command, display, shell=shell)
        return self._spawn_and_capture(command, shell, display)

    def submit_command_output(
        self,
        command: str,
        display: bool = False,
        *,
        shell: ShellKind = ShellKind.COMMAND,
    ) -> ProcessHandle:
        future = self._background().submit(self._spawn_and_capture, command, shell, display)
        return ProcessHandle(command, future)

    def run_powershell_command(self, command: str, async_: bool = False) -> ProcessHandle:
        return self.run_command(command, async_, shell=ShellKind.POWERSHELL)

    def get_powershell_command_output(
        self,
        command: str,
        display: bool = False,
        async_: bool = False,
    ) -> CommandOutput | ProcessHandle:
        return self.get_command_output(command, display, async_, shell=ShellKind.POWERSHELL)

    def shutdown(self, wait: bool = True) -> None:
        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=wait)

    def __enter__(self) -> ProcessInvoker:
        return self

    def __exit__(self, *_: object) -> None:
        self.shutdown()

    def _background(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self.max_async_workers,
                    thread_name_prefix="repair-process",
                )
            return self._pool

    def _run_args(self, command: str, shell: ShellKind) -> str | list[str]:
        prefix = self.powershell_argv if shell == ShellKind.POWERSHELL else self.shell_argv
        return build_run_args(prefix=prefix, command=command)

    def _spawn_and_wait(self, command: str, shell: ShellKind) -> CommandOutput:
        logger.debug("Running command: %s", command)
        try:
            process = subprocess.Popen(  # noqa: S603
                self._run_args(command, shell),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.STDOUT,
            )
        except OSError as error:
            logger.warning("Failed to start command %r: %s", command, error)
            return CommandOutput(exit_code=None, error=f"start failed: {error}")

        exit_code = _wait_for_exit(process, command)
        logger.debug("Command exited with code %s: %s", exit_code, command)
        return CommandOutput(exit_code=exit_code)

    def _spawn_and_capture(
        self,
        command: str,
        shell: ShellKind,
        display: bool,
    ) -> CommandOutput:
        logger.debug("Capturing command output: %s", command)
        lines: list[str] = []
        try:
            process = subprocess.Popen(  # noqa: S603
                self._run_args(command, shell),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding=self.encoding,
                errors="replace",
            )
        except OSError as error:
            logger.warning("Failed to start command %r: %s", command, error)
            return CommandOutput(exit_code=None, error=f"start failed: {error}")

        try:
            assert process.stdout is not None  # noqa: S101
            with process.stdout:
                for raw_line in process.stdout:
                    line = raw_line.rstrip()
                    lines.append(line)
                    if display and line.strip():
                        self.line_sink(line)
        except (OSError, ValueError) as error:
            logger.warning("Failed to read output of %r: %s", command, error)
            exit_code = _wait_for_exit(process, command)
            return CommandOutput.from_lines(
                lines,
                exit_code=exit_code,
                error=f"read failed: {error}",
            )

        exit_code = _wait_for_exit(process, command)
        return CommandOutput.from_lines(lines, exit_code=exit_code)


def _wait_for_exit(process: subprocess.Popen, command: str) -> int:
    try:
        return process.wait()
    except KeyboardInterrupt:
        logger.warning("Interrupted while waiting for command: %s", command)
        raise
