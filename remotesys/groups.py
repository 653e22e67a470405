"""Groups on a system, managed with getent, groupadd, groupmod and groupdel."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command

_CODE_NOT_FOUND = 2
_CODE_GID_EXISTS = 4
_CODE_NAME_EXISTS = 9

_SYSTEM_ID_LIMIT = 1000

_INTEGER = re.compile(r"[+-]?[0-9]+")


class GroupError(Exception):
    """Failure of an operation on a group."""

    default_message = "group resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class GroupNotFoundError(GroupError):
    """The group does not exist."""

    default_message = "group not found"


class GroupNameExistsError(GroupError):
    """Another group already has the name."""

    default_message = "group name exists"


class GroupGidExistsError(GroupError):
    """Another group already has the gid."""

    default_message = "group gid exists"


class GroupUnexpectedError(GroupError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


@dataclass
class Group:
    """A group; a gid of -1 leaves the choice of gid to the system."""

    name: str = ""
    gid: int = -1
    system: bool = False


class GroupEntry(NamedTuple):
    """The fields of a line of the group database that are used."""

    name: str
    gid: int


def _text(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def parse_group_entry(data: Union[bytes, str]) -> GroupEntry:
    """Parse a line of `getent group` output."""
    parts = _text(data).strip().split(":")
    if len(parts) < 3 or not parts[0] or not parts[2]:
        raise GroupUnexpectedError()
    if not _INTEGER.fullmatch(parts[2]):
        raise GroupUnexpectedError()
    return GroupEntry(name=parts[0], gid=int(parts[2]))


class GroupClient:
    """Reads and changes groups on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, text: str) -> CommandResult:
        try:
            return execute_command(self.system, ShellCommand(text))
        except Exception as exc:
            raise GroupError() from exc

    def get(self, gid: int) -> Group:
        """Return the group with *gid*."""
        result = self._run(f"getent group {gid}")
        if result.exit_code == _CODE_NOT_FOUND:
            raise GroupNotFoundError()
        if result.exit_code != 0 or not result.stdout:
            raise GroupUnexpectedError()
        entry = parse_group_entry(result.stdout)
        return Group(name=entry.name, gid=entry.gid, system=entry.gid < _SYSTEM_ID_LIMIT)

    def create(self, group: Group) -> int:
        """Create *group* and return its gid."""
        args = []
        if group.gid != -1:
            args.append(f"--gid {group.gid}")
        if group.system:
            args.append("--system")
        args.append(group.name)

        result = self._run(f"groupadd {' '.join(args)} && getent group {group.name}")
        if result.exit_code == _CODE_GID_EXISTS:
            raise GroupGidExistsError()
        if result.exit_code == _CODE_NAME_EXISTS:
            raise GroupNameExistsError()
        if result.exit_code != 0 or not result.stdout:
            raise GroupUnexpectedError()
        return parse_group_entry(result.stdout).gid

    def update(self, group: Group) -> None:
        """Rename the group with the gid of *group* to its name."""
        args = []
        if group.name:
            args.append(f"--new-name '{group.name}'")
        if not args:
            return

        groupmod = f'groupmod {" ".join(args)} "${{group}}"'
        script = (
            "_do() { gid=$1; group=$(getent group $gid | cut -d: -f1); "
            f'[ ! -z "${{group}}" ] || return {_CODE_NOT_FOUND}; {groupmod}; return $?; }}; '
            f"_do '{group.gid}';"
        )
        result = self._run(script)
        if result.exit_code == 0:
            return
        if result.exit_code == _CODE_NOT_FOUND:
            raise GroupNotFoundError()
        if result.exit_code == _CODE_NAME_EXISTS:
            raise GroupNameExistsError()
        raise GroupUnexpectedError()

    def delete(self, gid: int) -> None:
        """Delete the group with *gid*; a missing group is not an error."""
        script = (
            "_do() { gid=$1; group=$(getent group $gid | cut -d: -f1); "
            f'[ ! -z "${{group}}" ] || return {_CODE_NOT_FOUND}; groupdel "${{group}}"; return $?; }}; '
            f"_do '{gid}';"
        )
        result = self._run(script)
        if result.exit_code in (0, _CODE_NOT_FOUND):
            return
        raise GroupError(f"failed to delete group with gid {gid}")