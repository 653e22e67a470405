"""Services supervised by OpenRC."""

from __future__ import annotations

import io
import re
from typing import Dict, Optional

from dotenv import dotenv_values

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.openrc import Status, status_from_exit_code
from remotesys.services import (
    Service,
    ServiceError,
    ServiceNotFoundError,
    ServiceOperationError,
    ServiceRunlevelNotFoundError,
    ServiceStatus,
    ServiceUnexpectedError,
)

SERVICE_SUPERVISOR_OPENRC = "openrc"

_CODE_SERVICE_NOT_FOUND = 16
_CODE_RUNLEVEL_NOT_FOUND = 17

_STATUS_LINE = re.compile(r"status:(\d+)", re.ASCII)
_ENABLED_LINE = re.compile(r"enabled:(\d+)", re.ASCII)

_SERVICE_STATUS = {
    Status.STOPPING: ServiceStatus.STOPPING,
    Status.STARTING: ServiceStatus.STARTING,
    Status.INACTIVE: ServiceStatus.STOPPED,
    Status.CRASHED: ServiceStatus.STOPPED,
    Status.STARTED: ServiceStatus.STARTED,
    Status.STOPPED: ServiceStatus.STOPPED,
}


def openrc_status_to_service_status(status: Status) -> ServiceStatus:
    """Return the service status that corresponds to an OpenRC status."""
    try:
        return _SERVICE_STATUS[Status(status)]
    except ValueError:
        return ServiceStatus.UNDEFINED


def _properties(result: CommandResult) -> Dict[str, str]:
    try:
        values = dotenv_values(stream=io.StringIO(result.stdout_text()), interpolate=False)
    except Exception as exc:
        raise ServiceUnexpectedError(str(exc)) from exc
    return {key: value or "" for key, value in values.items()}


class OpenRcServiceClient:
    """Reads and changes OpenRC services on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def get(self, name: str, runlevel: str) -> Service:
        """Return the service *name* with its status and whether it is in *runlevel*."""
        script = (
            f"_do() {{ rc-service -q -e '{name}' || return {_CODE_SERVICE_NOT_FOUND}; "
            f"[ -d '/etc/runlevels/{runlevel}' ] || return {_CODE_RUNLEVEL_NOT_FOUND}; "
            f"{{ rc-service -q -C '{name}' status; echo \"status:$?\"; }}; "
            f"{{ [ ! -L '/etc/runlevels/{runlevel}/{name}' ]; echo \"enabled:$?\"; }}; }}; _do;"
        )
        try:
            result = execute_command(self.system, ShellCommand(script))
        except Exception as exc:
            raise ServiceError() from exc

        if result.exit_code == _CODE_SERVICE_NOT_FOUND:
            raise ServiceNotFoundError()
        if result.exit_code == _CODE_RUNLEVEL_NOT_FOUND:
            raise ServiceRunlevelNotFoundError()
        if result.exit_code != 0:
            raise ServiceUnexpectedError()

        lines = result.stdout_text().strip().split("\n")
        if len(lines) != 2 or result.stderr:
            raise ServiceUnexpectedError()

        status_match = _STATUS_LINE.fullmatch(lines[0])
        if status_match is None:
            raise ServiceUnexpectedError()
        try:
            openrc_status = status_from_exit_code(int(status_match.group(1)))
        except ValueError as exc:
            raise ServiceUnexpectedError() from exc

        enabled_match = _ENABLED_LINE.fullmatch(lines[1])
        if enabled_match is None:
            raise ServiceUnexpectedError()
        enabled_code = int(enabled_match.group(1))
        if enabled_code not in (0, 1):
            raise ServiceUnexpectedError()

        return Service(
            supervisor=SERVICE_SUPERVISOR_OPENRC,
            name=name,
            runlevel=runlevel,
            enabled=enabled_code == 1,
            status=openrc_status_to_service_status(openrc_status),
        )

    def apply(self, service: Service, *, restart: bool = False, reload: bool = False) -> None:
        """Bring *service* into the enabled state and status it sets.

        A started service is also restarted with *restart*, or else reloaded
        with *reload*.
        """
        name, runlevel = service.name, service.runlevel
        parts = []

        if service.enabled is not None:
            link = f"/etc/runlevels/{runlevel}/{name}"
            if service.enabled:
                parts.append(f" {{ [ -L '{link}' ] || ln -s '/etc/init.d/{name}' '{link}'; }};")
            else:
                parts.append(f" {{ [ ! -e '{link}' ] || rm -f '{link}'; }};")

        if service.status is not None:
            if service.status == ServiceStatus.STARTED:
                parts.append(f"{{ rc-service -q -C '{name}' start; echo \"rcservice_start_rc=$?\"; }};")
                if restart:
                    parts.append(
                        f" {{ rc-service -q -C '{name}' restart; echo \"rcservice_restart_rc=$?\"; }};"
                    )
                elif reload:
                    parts.append(
                        f" {{ rc-service -q -C '{name}' reload; echo \"rcservice_reload_rc=$?\"; }};"
                    )
            elif service.status == ServiceStatus.STOPPED:
                parts.append(f"{{ rc-service -q -C '{name}' stop; echo \"rcservice_stop_rc=$?\"; }};")

        if not parts:
            return

        script = (
            f"_do() {{ rc-service -q -e '{name}' || return {_CODE_SERVICE_NOT_FOUND};"
            f"{''.join(parts)} }}; _do;"
        )
        result = execute_command(self.system, ShellCommand(script))

        if result.exit_code == _CODE_SERVICE_NOT_FOUND:
            raise ServiceNotFoundError()
        if result.exit_code != 0:
            raise ServiceUnexpectedError()

        properties = _properties(result)
        for operation in ("start", "stop", "restart", "reload"):
            rc: Optional[str] = properties.get(f"rcservice_{operation}_rc")
            if rc is not None and rc != "0":
                raise ServiceOperationError(
                    f"rc-service -q -C '{name}' {operation}' returned unexpected exit code {rc}"
                )