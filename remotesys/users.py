"""Users on a system, managed with getent, useradd, usermod and userdel."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.groups import parse_group_entry

_CODE_NOT_FOUND = 2
_CODE_UID_EXISTS = 4
_CODE_GROUP_NOT_FOUND = 6
_CODE_NAME_EXISTS = 9

_GROUP_NOT_FOUND = 2

_SYSTEM_ID_LIMIT = 1000

_INTEGER = re.compile(r"[+-]?[0-9]+")


class UserError(Exception):
    """Failure of an operation on a user."""

    default_message = "user resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class UserNotFoundError(UserError):
    """The user does not exist."""

    default_message = "user not found"


class UserNameExistsError(UserError):
    """Another user already has the name."""

    default_message = "user name exists"


class UserUidExistsError(UserError):
    """Another user already has the uid."""

    default_message = "user uid exists"


class UserGroupNotFoundError(UserError):
    """The primary group of the user does not exist."""

    default_message = "primary group not found"


class UserUnexpectedError(UserError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


@dataclass
class User:
    """A user; fields left as None or empty are chosen by the system or left alone."""

    name: str = ""
    uid: Optional[int] = None
    group: str = ""
    gid: Optional[int] = None
    system: Optional[bool] = None
    home: str = ""
    shell: str = ""


class PasswdEntry(NamedTuple):
    """The fields of a line of the passwd database that are used."""

    name: str
    uid: int
    gid: int
    home: str
    shell: str


def parse_passwd_entry(data: Union[bytes, str]) -> PasswdEntry:
    """Parse a line of `getent passwd` output."""
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    parts = text.strip().split(":")
    if len(parts) != 7 or not parts[0] or not parts[2] or not parts[3]:
        raise UserUnexpectedError()
    if not (_INTEGER.fullmatch(parts[2]) and _INTEGER.fullmatch(parts[3])):
        raise UserUnexpectedError()
    return PasswdEntry(
        name=parts[0],
        uid=int(parts[2]),
        gid=int(parts[3]),
        home=parts[5],
        shell=parts[6],
    )


class UserClient:
    """Reads and changes users on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, text: str) -> CommandResult:
        try:
            return execute_command(self.system, ShellCommand(text))
        except Exception as exc:
            raise UserUnexpectedError() from exc

    def get(self, uid: int) -> User:
        """Return the user with *uid*, including the name of its primary group."""
        result = self._run(f"getent passwd {uid}")
        if result.exit_code == _CODE_NOT_FOUND:
            raise UserNotFoundError()
        if result.exit_code != 0 or not result.stdout:
            raise UserUnexpectedError()
        entry = parse_passwd_entry(result.stdout)

        group_result = self._run(f"getent group {entry.gid}")
        if group_result.exit_code == _GROUP_NOT_FOUND:
            raise UserGroupNotFoundError()
        if group_result.exit_code != 0 or not group_result.stdout:
            raise UserUnexpectedError()
        group = parse_group_entry(group_result.stdout)

        return User(
            name=entry.name,
            uid=entry.uid,
            group=group.name,
            gid=entry.gid,
            system=entry.uid < _SYSTEM_ID_LIMIT,
            home=entry.home,
            shell=entry.shell,
        )

    def create(self, user: User) -> int:
        """Create *user* and return its uid."""
        args = []
        if user.uid is not None:
            args.append(f"--uid {user.uid}")
        if user.system:
            args.append("--system")
        else:
            args.append("--no-create-home")
        if user.gid is not None:
            args.append(f"--gid {user.gid}")
        elif user.group:
            args.append(f"--gid {user.group}")
        else:
            args.append("--no-user-group")
        if user.home:
            args.append(f"--home {user.home}")
        if user.shell:
            args.append(f"--shell {user.shell}")
        args.append(user.name)

        result = self._run(f"useradd {' '.join(args)} && getent passwd {user.name}")
        if result.exit_code == _CODE_UID_EXISTS:
            raise UserUidExistsError()
        if result.exit_code == _CODE_GROUP_NOT_FOUND:
            raise UserGroupNotFoundError()
        if result.exit_code == _CODE_NAME_EXISTS:
            raise UserNameExistsError()
        if result.exit_code != 0 or not result.stdout:
            raise UserUnexpectedError()
        return parse_passwd_entry(result.stdout).uid

    def update(self, user: User) -> None:
        """Change the user with the uid of *user* to match its other fields."""
        if user.uid is None:
            raise UserUnexpectedError("update requires uid")

        args = []
        if user.name:
            args.append(f"--login '{user.name}'")
        if user.home:
            args.append(f"--home '{user.home}'")
        if user.shell:
            args.append(f"--shell '{user.shell}'")
        if user.gid is not None:
            args.append(f"--gid {user.gid}")
        elif user.group:
            args.append(f"--gid {user.group}")
        if not args:
            return

        usermod = f'usermod {" ".join(args)} "${{user}}"'
        script = (
            "_do() { uid=$1; user=$(getent passwd $uid | cut -d: -f1); "
            f'[ ! -z "${{user}}" ] || return {_CODE_NOT_FOUND}; {usermod}; return $?; }}; '
            f"_do '{user.uid}';"
        )
        result = self._run(script)
        if result.exit_code == 0:
            return
        if result.exit_code == _CODE_NOT_FOUND:
            raise UserNotFoundError()
        if result.exit_code == _CODE_NAME_EXISTS:
            raise UserNameExistsError()
        raise UserUnexpectedError()

    def delete(self, uid: int) -> None:
        """Delete the user with *uid*; a missing user is not an error."""
        script = (
            "_do() { uid=$1; user=$(getent passwd $uid | cut -d: -f1); "
            f'[ ! -z "${{user}}" ] || return {_CODE_NOT_FOUND}; userdel "${{user}}"; return $?; }}; '
            f"_do '{uid}';"
        )
        result = self._run(script)
        if result.exit_code in (0, _CODE_NOT_FOUND):
            return
        raise UserError(f"failed to delete user with uid {uid}")