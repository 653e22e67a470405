"""Facts about a system: its operating-system release and the identity in use."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from remotesys.cmd import System
from remotesys.command import CommandResult, execute_command
from remotesys.commands import CatCommand, SimpleCommand, cat

_IDENTITY = re.compile(
    r"(?:uid=(?P<uid>\d+)(?:\((?P<user>\w+)\))?)?\s*"
    r"(?:gid=(?P<gid>\d+)(?:\((?P<group>\w+)\))?)?\s*"
    r"(?:groups=(?P<groups>(?:\d+\(.*\))*))?",
    re.ASCII,
)

_PRETTY_NAME = re.compile(r"^PRETTY_NAME=(.*)$")
_ID = re.compile(r"^ID=(.*)$")
_VERSION_ID = re.compile(r"^VERSION_ID=(.*)$")
_UBUNTU_RELEASE = re.compile(r"[\( ]([\d\.]+)")
_CENTOS_RELEASE = re.compile(r"^CentOS( Linux)? release ([\d\.]+) ")
_REDHAT_RELEASE = re.compile(r"[\( ]([\d\.]+)")


class InfoError(Exception):
    """Failure while gathering information about a system."""

    default_message = "info resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class InfoUnexpectedError(InfoError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


@dataclass
class ReleaseInfo:
    """Operating-system release as described by /etc/os-release."""

    name: str = ""
    vendor: str = ""
    version: str = ""
    release: str = ""


@dataclass
class IdentityInfo:
    """User and primary group of the account commands run as."""

    name: str = ""
    uid: int = 0
    group: str = ""
    gid: int = 0


class InfoClient:
    """Gathers information about a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, command) -> CommandResult:
        try:
            return execute_command(self.system, command)
        except Exception as exc:
            raise InfoError() from exc

    def _read(self, path: str) -> Optional[str]:
        try:
            content = cat(self.system, path)
        except Exception:
            return None
        return content.decode("utf-8", errors="replace").strip()

    def get_identity(self) -> IdentityInfo:
        """Return the identity reported by `id`."""
        result = self._run(SimpleCommand("id"))
        if result.exit_code != 0 or not result.stdout:
            raise InfoUnexpectedError()

        match = _IDENTITY.fullmatch(result.stdout_text().strip())
        if match is None or match.group("uid") is None or match.group("gid") is None:
            raise InfoUnexpectedError()

        return IdentityInfo(
            name=match.group("user") or "",
            uid=int(match.group("uid")),
            group=match.group("group") or "",
            gid=int(match.group("gid")),
        )

    def get_release(self) -> ReleaseInfo:
        """Return the operating-system release of the system."""
        result = self._run(CatCommand("/etc/os-release"))
        if result.exit_code != 0 or not result.stdout:
            raise InfoUnexpectedError()

        info = ReleaseInfo()
        for line in result.stdout_text().splitlines():
            if match := _PRETTY_NAME.match(line):
                info.name = match.group(1).strip('"')
            elif match := _ID.match(line):
                info.vendor = match.group(1).strip('"').lower()
            elif match := _VERSION_ID.match(line):
                info.version = match.group(1).strip('"')

        if info.vendor == "debian":
            release = self._read("/etc/debian_version")
            if release is not None:
                info.release = release
        elif info.vendor == "ubuntu":
            if match := _UBUNTU_RELEASE.search(info.name):
                info.release = match.group(1)
        elif info.vendor == "centos":
            release = self._read("/etc/centos-release")
            if release is not None and (match := _CENTOS_RELEASE.search(release)):
                info.release = match.group(2)
        elif info.vendor == "rhel":
            release = self._read("/etc/redhat-release")
            if release is not None and (match := _REDHAT_RELEASE.search(release)):
                info.release = match.group(1)
            if not info.release and (match := _REDHAT_RELEASE.search(info.name)):
                info.release = match.group(1)

        return info