"""Packages managed by apt and dpkg."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Optional, Union

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.packages import Package, PackageState, PackageVersion, Packages

APT_PACKAGE_MANAGER = "apt"

_GET_SCRIPT = (
    "_do() { which dpkg-query >/dev/null 2>&1; which_dpkg_query_rc=$?; "
    "if [ $which_dpkg_query_rc -eq 0 ]; then dpkg-query --show --no-pager "
    r"""--showformat='"${Package}","${Version}","${db:Status-Abbrev}","${Status}"\n'; """
    'else echo "which_dpkg_query_rc=${which_dpkg_query_rc}"; fi }; _do;'
)

_INSTALL_PREFIX = (
    "_do() { export DEBIAN_FRONTEND=noninteractive DEBIAN_PRIORITY=critical LANGUAGE=C "
    "LANG=C LC_ALL=C LC_MESSAGES=C LC_CTYPE=C; apt-get update >/dev/null 2>&1; "
    "apt_update_rc=$?; if [ $apt_update_rc -ne 0 ]; then "
    'echo "apt_update_rc=${apt_update_rc}"; fi; apt-get install --no-install-recommends '
)
_INSTALL_SUFFIX = " -y -q; }; _do;"


class AptPackageError(Exception):
    """Failure of an operation on apt packages."""

    default_message = "apt package resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class AptPackageManagerNotAvailableError(AptPackageError):
    """dpkg-query is not installed on the system."""

    default_message = "apt not available"


class AptPackageManagerError(AptPackageError):
    """apt reported a failure."""

    default_message = "apt error"


class AptPackageUnexpectedError(AptPackageError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


def parse_dpkg_query(data: Union[bytes, str]) -> Packages:
    """Parse the CSV that `dpkg-query --show` prints, sorted by package name.

    Each record holds name, version, abbreviated status and status. A package
    counts as installed if the second letter of its abbreviated status is 'i'.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    packages = Packages()
    try:
        for record in csv.reader(io.StringIO(text, newline=""), strict=True):
            if not record:
                continue
            if len(record) != 4:
                raise AptPackageUnexpectedError()
            name, version, abbrev, _status = record
            if len(abbrev) != 3:
                raise AptPackageUnexpectedError()
            state = PackageState.INSTALLED if abbrev[1] == "i" else PackageState.NOT_INSTALLED
            packages.append(
                Package(
                    name,
                    manager=APT_PACKAGE_MANAGER,
                    version=PackageVersion(installed=version),
                    state=state,
                )
            )
    except csv.Error as exc:
        raise AptPackageError(str(exc)) from exc
    return packages.sorted_by_name()


class AptPackageClient:
    """Reads and changes the packages installed with apt on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def _run(self, text: str, error: type) -> CommandResult:
        try:
            return execute_command(self.system, ShellCommand(text))
        except Exception as exc:
            raise error() from exc

    def get(self) -> Packages:
        """Return all packages known to dpkg, sorted by name."""
        result = self._run(_GET_SCRIPT, AptPackageError)
        stdout = result.stdout_text()
        if stdout.startswith("which_dpkg_query_rc=") and stdout != "which_dpkg_query_rc=0":
            raise AptPackageManagerNotAvailableError()
        if result.exit_code != 0:
            raise AptPackageUnexpectedError()
        return parse_dpkg_query(result.stdout)

    def apply(self, packages: Iterable[Package]) -> None:
        """Install or remove *packages* in one apt-get run."""
        packages = list(packages)
        if not packages:
            return

        args = []
        for package in packages:
            if package.state == PackageState.INSTALLED:
                args.append(f"'{package.name}+'")
            elif package.state == PackageState.NOT_INSTALLED:
                args.append(f"'{package.name}-'")

        result = self._run(_INSTALL_PREFIX + " ".join(args) + _INSTALL_SUFFIX, AptPackageManagerError)
        if result.stdout_text().startswith("apt_update_rc="):
            raise AptPackageManagerError(result.stderr_text() or None)
        if result.exit_code != 0:
            raise AptPackageManagerError(result.stderr_text() or None)