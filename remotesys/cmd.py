"""Shell command descriptions and the interface of systems that execute them."""

from __future__ import annotations

import shlex
import threading
from dataclasses import dataclass
from io import BytesIO
from typing import IO, Callable, Optional, Protocol, Union

TextSource = Union[str, Callable[[], str]]


@dataclass(frozen=True)
class Result:
    """Outcome of an executed command."""

    exit_code: int


class Command:
    """A command line together with the streams an executing system uses.

    The command line may be given as a string or as a callable which is
    evaluated every time the text is requested.
    """

    def __init__(
        self,
        text: TextSource,
        *,
        stdin: Optional[IO[bytes]] = None,
        stdout: Optional[IO[bytes]] = None,
        stderr: Optional[IO[bytes]] = None,
    ) -> None:
        if isinstance(text, str):
            value = text
            self._text: Callable[[], str] = lambda: value
        else:
            self._text = text
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.result: Optional[Result] = None

    def text(self) -> str:
        """Return the command line."""
        return self._text()

    def passthrough(self, command: "Command") -> "Command":
        """Use the streams of *command* for this command and return self."""
        self.stdin = command.stdin
        self.stdout = command.stdout
        self.stderr = command.stderr
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text()!r})"


class System(Protocol):
    """Something that runs commands, such as a local shell or a remote host."""

    def execute(self, command: Command) -> Result:
        """Run *command*, feeding and filling its streams, and return its result."""


class SyncWriter:
    """A writer that serialises writes to an underlying writer."""

    def __init__(self, writer: IO[bytes]) -> None:
        self._writer = writer
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            return self._writer.write(data)

    def flush(self) -> None:
        with self._lock:
            self._writer.flush()


class BufferedCommand(Command):
    """A command whose standard output and error are collected in memory."""

    def __init__(self, text: TextSource, *, stdin: Optional[IO[bytes]] = None) -> None:
        self.stdout_buf = BytesIO()
        self.stderr_buf = BytesIO()
        super().__init__(text, stdin=stdin, stdout=self.stdout_buf, stderr=self.stderr_buf)


def combined_output(out: IO[bytes]) -> dict[str, SyncWriter]:
    """Return stream arguments that send stdout and stderr to the same writer."""
    writer = SyncWriter(out)
    return {"stdout": writer, "stderr": writer}


Middleware = Callable[[Command], Command]


def _shell_wrapper(prefix: str) -> Middleware:
    def middleware(command: Command) -> Command:
        return Command(lambda: prefix + shlex.quote(command.text())).passthrough(command)

    return middleware


def sh_middleware() -> Middleware:
    """Return a middleware which runs a command through /bin/sh."""
    return _shell_wrapper("/bin/sh -c ")


def sudo_sh_middleware() -> Middleware:
    """Return a middleware which runs a command through /bin/sh under sudo."""
    return _shell_wrapper("sudo /bin/sh -c ")