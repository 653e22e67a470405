"""Regular files, folders and symbolic links on a system."""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from io import BytesIO
from typing import IO, Optional, Sequence, Union

from remotesys.cmd import System
from remotesys.command import CommandError, CommandResult, ShellCommand, execute_command
from remotesys.commands import (
    ChgrpCommand,
    ChmodCommand,
    ChownCommand,
    CompositeCommand,
    MkdirCommand,
    SimpleCommand,
)

_CODE_PATH_EXISTS = 16
_CODE_NOT_FOUND = 17

_PATH_SUB = '"${path}"'

Content = Union[bytes, IO[bytes], None]


class _ResourceError(Exception):
    default_message = ""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class FileResourceError(_ResourceError):
    """Failure of an operation on a regular file."""

    default_message = "file resource"


class FileResourceExistsError(FileResourceError):
    """Something already exists at the path of the file."""

    default_message = "file exists"


class FileResourceNotFoundError(FileResourceError):
    """The file does not exist."""

    default_message = "file not found"


class FolderError(_ResourceError):
    """Failure of an operation on a folder."""

    default_message = "folder resource"


class FolderPathExistsError(FolderError):
    """Something already exists at the path of the folder."""

    default_message = "folder path exists"


class FolderNotFoundError(FolderError):
    """The folder does not exist."""

    default_message = "folder not found"


class LinkError(_ResourceError):
    """Failure of an operation on a symbolic link."""

    default_message = "link resource"


class LinkExistsError(LinkError):
    """Something already exists at the path of the link."""

    default_message = "link exists"


class LinkNotFoundError(LinkError):
    """The link does not exist."""

    default_message = "link not found"


@dataclass
class File:
    """A regular file; a uid or gid of -1 falls back to the user or group name."""

    path: str
    mode: int = 0
    user: str = ""
    uid: int = -1
    group: str = ""
    gid: int = -1
    content: Content = None
    md5_sum: str = ""


@dataclass
class Folder:
    """A folder; a uid or gid of -1 falls back to the user or group name."""

    path: str
    mode: int = 0
    user: str = ""
    uid: int = -1
    group: str = ""
    gid: int = -1


@dataclass
class Link:
    """A symbolic link pointing at *target*."""

    path: str
    target: str = ""
    user: str = ""
    uid: int = -1
    group: str = ""
    gid: int = -1


def _ownership(
    uid: int, user: str, gid: int, group: str, *, no_dereference: bool = False
) -> list:
    commands: list = []
    if uid != -1:
        commands.append(ChownCommand(_PATH_SUB, str(uid), no_dereference=no_dereference))
    elif user:
        commands.append(ChownCommand(_PATH_SUB, user, no_dereference=no_dereference))
    if gid != -1:
        commands.append(ChgrpCommand(_PATH_SUB, str(gid), no_dereference=no_dereference))
    elif group:
        commands.append(ChgrpCommand(_PATH_SUB, group, no_dereference=no_dereference))
    return commands


def _script(test: str, code: int, commands: Sequence, path: str) -> str:
    body = CompositeCommand(list(commands)).command()
    return f'_do() {{ path=$1; [ {test} "${{path}}" ] || return {code}; {{ {body}; }} || return 1; }}; _do \'{path}\';'


def _delete_script(test: str, remove: str, path: str) -> str:
    return (
        f'_do() {{ path=$1; [ {test} "${{path}}" ] || return {_CODE_NOT_FOUND}; '
        f'{remove} "${{path}}" || return 1; }}; _do \'{path}\';'
    )


class _Client:
    error: type = _ResourceError

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, text: str, stdin: Optional[IO[bytes]] = None) -> CommandResult:
        try:
            return execute_command(self.system, ShellCommand(text, stdin))
        except Exception as exc:
            raise self.error() from exc

    def _check(self, result: CommandResult) -> None:
        try:
            result.check()
        except CommandError as exc:
            raise self.error(str(exc)) from exc

    def _delete(self, test: str, remove: str, path: str, not_found: type) -> None:
        result = self._run(_delete_script(test, remove, path))
        if result.exit_code == _CODE_NOT_FOUND:
            raise not_found()
        if result.exit_code != 0:
            raise self.error(f'failed to delete "{path}"')


class FileClient(_Client):
    """Creates, changes and deletes regular files.

    With *compress* the content is sent gzip-compressed and unpacked on the
    system.
    """

    error = FileResourceError

    def __init__(self, system: System, *, compress: bool = False) -> None:
        super().__init__(system)
        self.compress = compress

    def _content(self, content: Content) -> tuple[list, Optional[IO[bytes]]]:
        if content is None:
            return [], None
        stream: IO[bytes] = BytesIO(content) if isinstance(content, bytes) else content
        if not self.compress:
            return [SimpleCommand(f"cat - > {_PATH_SUB}")], stream
        packed = gzip.compress(stream.read(), compresslevel=9)
        return [SimpleCommand(f"gzip -d > {_PATH_SUB}")], BytesIO(packed)

    def _attributes(self, file: File) -> list:
        commands: list = []
        if file.mode != 0:
            commands.append(ChmodCommand(_PATH_SUB, file.mode))
        commands += _ownership(file.uid, file.user, file.gid, file.group)
        return commands

    def create(self, file: File) -> None:
        """Create *file*; fails if anything exists at its path."""
        commands, stdin = self._content(file.content)
        if not commands:
            commands = [SimpleCommand(f"touch {_PATH_SUB}")]
        commands += self._attributes(file)

        result = self._run(_script("! -e", _CODE_PATH_EXISTS, commands, file.path), stdin)
        if result.exit_code == _CODE_PATH_EXISTS:
            raise FileResourceExistsError()
        self._check(result)

    def update(self, file: File) -> None:
        """Write the content and attributes of *file* that are set."""
        commands, stdin = self._content(file.content)
        commands += self._attributes(file)
        if not commands:
            return

        result = self._run(_script("-f", _CODE_NOT_FOUND, commands, file.path), stdin)
        if result.exit_code == _CODE_NOT_FOUND:
            raise FileResourceNotFoundError()
        self._check(result)

    def delete(self, path: str) -> None:
        """Delete the regular file at *path*."""
        self._delete("-f", "rm -f", path, FileResourceNotFoundError)


class FolderClient(_Client):
    """Creates, changes and deletes folders."""

    error = FolderError

    def create(self, folder: Folder) -> None:
        """Create *folder* and its parents; fails if anything exists at its path."""
        commands: list = [MkdirCommand(_PATH_SUB, folder.mode)]
        commands += _ownership(folder.uid, folder.user, folder.gid, folder.group)

        result = self._run(_script("! -e", _CODE_PATH_EXISTS, commands, folder.path))
        if result.exit_code == _CODE_PATH_EXISTS:
            raise FolderPathExistsError()
        self._check(result)

    def update(self, folder: Folder) -> None:
        """Apply the mode and ownership of *folder* that are set."""
        commands: list = []
        if folder.mode != 0:
            commands.append(ChmodCommand(_PATH_SUB, folder.mode))
        commands += _ownership(folder.uid, folder.user, folder.gid, folder.group)
        if not commands:
            return

        result = self._run(_script("-d", _CODE_NOT_FOUND, commands, folder.path))
        if result.exit_code == _CODE_NOT_FOUND:
            raise FolderNotFoundError()
        self._check(result)

    def delete(self, path: str) -> None:
        """Delete the folder at *path* with everything in it."""
        self._delete("-d", "rm -rf", path, FolderNotFoundError)


class LinkClient(_Client):
    """Creates, changes and deletes symbolic links."""

    error = LinkError

    def create(self, link: Link) -> None:
        """Create *link*; fails if anything exists at its path."""
        commands: list = [SimpleCommand(f"ln -s '{link.target}' {_PATH_SUB}")]
        commands += _ownership(link.uid, link.user, link.gid, link.group, no_dereference=True)

        result = self._run(_script("! -e", _CODE_PATH_EXISTS, commands, link.path))
        if result.exit_code == _CODE_PATH_EXISTS:
            raise LinkExistsError()
        self._check(result)

    def update(self, link: Link) -> None:
        """Repoint and re-own the link as far as *link* sets these."""
        commands: list = []
        if link.target:
            commands.append(SimpleCommand(f"ln -sf '{link.target}' {_PATH_SUB}"))
        commands += _ownership(link.uid, link.user, link.gid, link.group)
        if not commands:
            return

        result = self._run(_script("-L", _CODE_NOT_FOUND, commands, link.path))
        if result.exit_code == _CODE_NOT_FOUND:
            raise LinkNotFoundError()
        self._check(result)

    def delete(self, path: str) -> None:
        """Delete the symbolic link at *path*."""
        self._delete("-L", "rm -f", path, LinkNotFoundError)