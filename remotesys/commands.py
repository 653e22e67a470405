"""Builders for common shell commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from remotesys.cmd import System
from remotesys.command import CommandError, execute_command

_PERMISSION_BITS = 0o777


@dataclass(frozen=True)
class SimpleCommand:
    """A literal command line."""

    text: str

    def command(self) -> str:
        return self.text


@dataclass(frozen=True)
class ChownCommand:
    """Change the owner, and optionally the group, of a path."""

    path: str
    user: str
    group: str = ""
    no_dereference: bool = False

    def command(self) -> str:
        if not self.path or not self.user:
            return ""
        args = ["-h"] if self.no_dereference else []
        args.append(f"{self.user}:{self.group}" if self.group else self.user)
        args.append(self.path)
        return "chown " + " ".join(args)


@dataclass(frozen=True)
class ChgrpCommand:
    """Change the group of a path."""

    path: str
    group: str
    no_dereference: bool = False

    def command(self) -> str:
        if not self.path or not self.group:
            return ""
        args = ["-h"] if self.no_dereference else []
        args += [self.group, self.path]
        return "chgrp " + " ".join(args)


@dataclass(frozen=True)
class ChmodCommand:
    """Set the permission bits of a path."""

    path: str
    mode: int

    def command(self) -> str:
        mode = self.mode & _PERMISSION_BITS
        if not self.path or mode == 0:
            return ""
        return f"chmod {mode:o} {self.path}"


@dataclass(frozen=True)
class MkdirCommand:
    """Create a directory and its parents, optionally with permission bits."""

    path: str
    mode: int = 0

    def command(self) -> str:
        if not self.path:
            return ""
        mode = self.mode & _PERMISSION_BITS
        if mode > 0:
            return f"mkdir -m {mode:o} -p {self.path}"
        return f"mkdir -p {self.path}"


@dataclass(frozen=True)
class CatCommand:
    """Print the contents of a file."""

    path: str

    def command(self) -> str:
        if not self.path:
            return ""
        return f"cat '{self.path}'"


@dataclass(frozen=True)
class CompositeCommand:
    """Commands run one after another while each succeeds."""

    commands: Sequence = ()

    def command(self) -> str:
        return " && ".join(part.command() for part in self.commands)


def cat(system: System, path: str) -> bytes:
    """Return the contents of the file at *path* on *system*."""
    result = execute_command(system, CatCommand(path))
    if result.exit_code != 0:
        raise CommandError(result.exit_code, f"non-zero exit code: {result.exit_code}")
    return result.stdout