"""Packages managed by apk, the Alpine package manager."""

from __future__ import annotations

import re
from dataclasses import replace
from io import BytesIO
from typing import Iterable, Optional, Union

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.commands import CatCommand
from remotesys.packages import Package, PackageState, PackageVersion, Packages

APK_PACKAGE_MANAGER = "apk"

_WORLD_PATH = "/etc/apk/world"

_VERSION_LINE = re.compile(
    r"^(?P<name>\S+)-(?P<installed>\d\S*)\s*(=|<)\s*(?P<available>\d\S*)\s*$",
    re.MULTILINE | re.ASCII,
)

_WORLD_LINE = re.compile(
    r"^(?P<name>\S+?)(?P<spec>(?P<prefix>=|<|>|=~)(?P<version>\S+))?\s*$",
    re.MULTILINE | re.ASCII,
)

_OPERATORS = ("=", "<", "<=", ">", ">=", "~")

_GET_SCRIPT = (
    "_do() { which apk >/dev/null 2>&1; which_apk_rc=$?; if [ $which_apk_rc -eq 0 ]; "
    'then apk -v version; else echo "which_apk_rc=${which_apk_rc}"; fi }; _do;'
)

_UPGRADE_SCRIPT = (
    "{ ! which apk >/dev/null 2>&1 && { >&2 echo '{\"pre\":1}'; }; } || "
    "{ cat - > /etc/apk/world.new; mv /etc/apk/world /etc/apk/world.old; "
    "mv /etc/apk/world.new /etc/apk/world; apk upgrade; rm -f /etc/apk/world.old; } || "
    "{ [ -f /etc/apk/world.new ] && rm -f /etc/apk/world.new; [ -f /etc/apk/world.old ] && "
    "{ rm -f /etc/apk/world; mv /etc/apk/world.old /etc/apk/world; apk upgrade }; }; }"
)


class ApkPackageError(Exception):
    """Failure of an operation on apk packages."""

    default_message = "apk package resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class ApkPackageManagerNotAvailableError(ApkPackageError):
    """apk is not installed on the system."""

    default_message = "apk not available"


class ApkPackageManagerError(ApkPackageError):
    """apk reported a failure."""

    default_message = "apk error"


class ApkPackageUnexpectedError(ApkPackageError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


def _text(data: Union[bytes, str]) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def parse_apk_version(data: Union[bytes, str]) -> Packages:
    """Parse the output of `apk -v version` into installed packages."""
    return Packages(
        Package(
            match.group("name"),
            manager=APK_PACKAGE_MANAGER,
            version=PackageVersion(
                installed=match.group("installed"),
                available=match.group("available"),
            ),
            state=PackageState.INSTALLED,
        )
        for match in _VERSION_LINE.finditer(_text(data).strip())
    )


def parse_apk_world(data: Union[bytes, str]) -> Packages:
    """Parse /etc/apk/world into packages with their version constraints."""
    return Packages(
        Package(
            match.group("name"),
            manager=APK_PACKAGE_MANAGER,
            version=PackageVersion(required=match.group("spec") or ""),
            state=PackageState.INSTALLED,
        )
        for match in _WORLD_LINE.finditer(_text(data))
    )


def has_apk_version_operator(version: str) -> bool:
    """Return whether *version* starts with an apk version operator."""
    return version.startswith(_OPERATORS)


def render_apk_world(packages: Iterable[Package]) -> bytes:
    """Render packages as the lines of /etc/apk/world, sorted by name."""
    lines = []
    for package in Packages(packages).sorted_by_name():
        version = package.version.required
        if version and not has_apk_version_operator(version):
            version = "=" + version
        lines.append(f"{package.name}{version}\n")
    return "".join(lines).encode("utf-8")


class ApkPackageClient:
    """Reads and changes the packages in the apk world of a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, command) -> CommandResult:
        try:
            return execute_command(self.system, command)
        except Exception as exc:
            raise ApkPackageError() from exc

    def _world(self) -> bytes:
        result = self._run(CatCommand(_WORLD_PATH))
        if result.exit_code != 0:
            raise ApkPackageUnexpectedError()
        return result.stdout

    def get(self) -> Packages:
        """Return the packages in the world with their installed and available versions."""
        result = self._run(ShellCommand(_GET_SCRIPT))
        stdout = result.stdout_text()
        if stdout.startswith("which_apk_rc=") and stdout != "which_apk_rc=0":
            raise ApkPackageManagerNotAvailableError()
        if result.exit_code != 0 or not result.stdout:
            raise ApkPackageUnexpectedError()

        versions = parse_apk_version(result.stdout).to_map()
        packages = Packages()
        for package in parse_apk_world(self._world()):
            known = versions.get(package.name)
            if known is not None:
                package = replace(
                    package,
                    version=replace(
                        package.version,
                        installed=known.version.installed,
                        available=known.version.available,
                    ),
                )
            packages.append(package)
        return packages.sorted_by_name()

    def apply(self, packages: Iterable[Package]) -> None:
        """Add or remove *packages* in the world and upgrade the system to match."""
        packages = list(packages)
        if not packages:
            return

        world = self._world()
        wanted = parse_apk_world(world).to_map()
        for package in packages:
            if package.state == PackageState.INSTALLED:
                wanted[package.name] = Package(
                    package.name,
                    manager=APK_PACKAGE_MANAGER,
                    version=PackageVersion(required=package.version.required),
                    state=PackageState.INSTALLED,
                )
            elif package.state == PackageState.NOT_INSTALLED:
                wanted.pop(package.name, None)

        new_world = render_apk_world(wanted.values())
        if new_world == world:
            return

        result = self._run(ShellCommand(_UPGRADE_SCRIPT, BytesIO(new_world)))
        if result.exit_code != 0:
            raise ApkPackageManagerError(result.stderr_text().strip() or None)