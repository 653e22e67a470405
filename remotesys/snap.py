"""Packages managed by snap."""

from __future__ import annotations

from typing import Iterable, Optional, Union

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.packages import Package, PackageState, PackageVersion, Packages

SNAP_PACKAGE_MANAGER = "snap"

_GET_SCRIPT = (
    "_do() { which snap >/dev/null 2>&1; which_snap_rc=$?; if [ $which_snap_rc -eq 0 ]; "
    'then snap list; else echo "which_snap_rc=${which_snap_rc}"; fi }; _do;'
)

_CHECK_SNAP = (
    "_do() { which snap >/dev/null 2>&1; which_snap_rc=$?; if [ $which_snap_rc -ne 0 ]; "
    'then echo "which_snap_rc=${which_snap_rc}"; exit 1; fi; '
)


class SnapPackageError(Exception):
    """Failure of an operation on snap packages."""

    default_message = "snap package resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class SnapPackageManagerNotAvailableError(SnapPackageError):
    """snap is not installed on the system."""

    default_message = "snap not available"


class SnapPackageManagerError(SnapPackageError):
    """snap reported a failure."""

    default_message = "snap error"


class SnapPackageUnexpectedError(SnapPackageError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


def parse_snap_list(data: Union[bytes, str]) -> Packages:
    """Parse the table that `snap list` prints, sorted by package name.

    The first line is the header; the first two columns of each row are the
    name and the version.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    lines = text.splitlines()
    if not lines:
        raise SnapPackageUnexpectedError()

    packages = Packages()
    for line in lines[1:]:
        fields = line.split()
        if len(fields) < 2:
            continue
        packages.append(
            Package(
                fields[0],
                manager=SNAP_PACKAGE_MANAGER,
                version=PackageVersion(installed=fields[1]),
                state=PackageState.INSTALLED,
            )
        )
    return packages.sorted_by_name()


class SnapPackageClient:
    """Reads and changes the snaps installed on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, text: str, error: type) -> CommandResult:
        try:
            return execute_command(self.system, ShellCommand(text))
        except Exception as exc:
            raise error() from exc

    def get(self) -> Packages:
        """Return the installed snaps, sorted by name."""
        result = self._run(_GET_SCRIPT, SnapPackageError)
        stdout = result.stdout_text()
        if stdout.startswith("which_snap_rc=") and stdout != "which_snap_rc=0":
            raise SnapPackageManagerNotAvailableError()
        if result.exit_code != 0:
            raise SnapPackageUnexpectedError()
        return parse_snap_list(result.stdout)

    def apply(self, packages: Iterable[Package]) -> None:
        """Install or remove each of *packages*, one snap command at a time."""
        for package in packages:
            action = "install" if package.state == PackageState.INSTALLED else "remove"
            script = f"{_CHECK_SNAP}snap {action} '{package.name}'; }}; _do;"
            result = self._run(script, SnapPackageManagerError)
            if result.stdout_text().startswith("which_snap_rc="):
                raise SnapPackageManagerNotAvailableError()
            if result.exit_code != 0:
                raise SnapPackageManagerError(result.stderr_text() or None)