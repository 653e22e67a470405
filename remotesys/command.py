"""Execution of shell commands on a system with captured output."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import IO, Callable, Optional, Protocol, Union

from remotesys.cmd import Command, System

log = logging.getLogger(__name__)

_LOG_LIMIT = 4096

StreamOption = Union[bool, None, Callable[[IO[bytes]], IO[bytes]]]


class _CommandLike(Protocol):
    def command(self) -> str: ...


@dataclass(frozen=True)
class ShellCommand:
    """A command line, optionally with data for its standard input."""

    text: str
    stdin: Optional[IO[bytes]] = None

    def command(self) -> str:
        return self.text


class CommandError(Exception):
    """Raised when a command finished with a non-zero exit code."""

    def __init__(self, exit_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"command returned with exit code {exit_code}")
        self.exit_code = exit_code


@dataclass
class CommandResult:
    """Captured output and exit code of an executed command."""

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0

    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")

    def check(self) -> "CommandResult":
        """Return self, or raise CommandError if the exit code is not zero."""
        if self.exit_code != 0:
            raise CommandError(self.exit_code)
        return self


def _stream(option: StreamOption, buffer: BytesIO) -> Optional[IO[bytes]]:
    if option is True:
        return buffer
    if not option:
        return None
    return option(buffer)


def execute_command(
    system: System,
    command: _CommandLike,
    *,
    stdout: StreamOption = True,
    stderr: StreamOption = True,
) -> CommandResult:
    """Run *command* on *system* and return what it printed and its exit code.

    ``stdout`` and ``stderr`` are True to capture the stream, False to leave
    it unattached, or a callable that receives the capture buffer and returns
    the writer to hand to the system.
    """
    out, err = BytesIO(), BytesIO()
    text = command.command()
    executable = Command(
        text,
        stdin=getattr(command, "stdin", None),
        stdout=_stream(stdout, out),
        stderr=_stream(stderr, err),
    )
    outcome = system.execute(executable)
    result = CommandResult(stdout=out.getvalue(), stderr=err.getvalue(), exit_code=outcome.exit_code)

    log.debug(
        "command executed: cmd=%r exitcode=%d stdout=%r stdout_len=%d stderr=%r stderr_len=%d",
        text,
        result.exit_code,
        result.stdout[:_LOG_LIMIT].decode("utf-8", errors="replace"),
        len(result.stdout),
        result.stderr[:_LOG_LIMIT].decode("utf-8", errors="replace"),
        len(result.stderr),
    )
    return result