"""External process invocation."""

from repair_toolkit.process.base import CommandOutput, ProcessHandle, ProcessInvocation, ShellKind
from repair_toolkit.process.invoker import ProcessInvoker

__all__ = [
    "CommandOutput",
    "ProcessHandle",
    "ProcessInvocation",
    "ProcessInvoker",
    "ShellKind",
]
