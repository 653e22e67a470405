"""Services supervised by systemd."""

from __future__ import annotations

import io
from typing import Dict, Optional

from dotenv import dotenv_values

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.services import (
    Service,
    ServiceError,
    ServiceNotFoundError,
    ServiceOperationError,
    ServiceStatus,
    ServiceUnexpectedError,
)
from remotesys.systemd import (
    PROPERTY_ACTIVE_STATE,
    PROPERTY_LOAD_STATE,
    ActiveState,
    IsEnabledOutput,
    LoadState,
)

SERVICE_SUPERVISOR_SYSTEMD = "systemd"

_SERVICE_STATUS = {
    ActiveState.ACTIVE: ServiceStatus.STARTED,
    ActiveState.RELOADING: ServiceStatus.UNDEFINED,
    ActiveState.INACTIVE: ServiceStatus.STOPPED,
    ActiveState.FAILED: ServiceStatus.STOPPED,
    ActiveState.ACTIVATING: ServiceStatus.STARTED,
    ActiveState.DEACTIVATING: ServiceStatus.STOPPED,
}

_ENABLED = (IsEnabledOutput.ENABLED, IsEnabledOutput.ENABLED_RUNTIME)


def active_state_to_service_status(state: ActiveState) -> ServiceStatus:
    """Return the service status that corresponds to a systemd ActiveState."""
    try:
        return _SERVICE_STATUS[ActiveState(state)]
    except ValueError:
        return ServiceStatus.UNDEFINED


def _properties(result: CommandResult) -> Dict[str, str]:
    try:
        values = dotenv_values(stream=io.StringIO(result.stdout_text()), interpolate=False)
    except Exception as exc:
        raise ServiceUnexpectedError(str(exc)) from exc
    return {key: value or "" for key, value in values.items()}


class SystemdServiceClient:
    """Reads and changes systemd service units on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def get(self, name: str, runlevel: str) -> Service:
        """Return the service unit *name* with its status and whether it is enabled."""
        unit = f"{name}.service"
        script = (
            f"_do() {{ systemctl daemon-reload; systemctl show '{unit}' "
            "--property=LoadState,ActiveState,SubState --plain --no-page; "
            f"echo \"IsEnabled=$(systemctl is-enabled '{unit}' 2> /dev/null || true)\"; }}; _do;"
        )
        try:
            result = execute_command(self.system, ShellCommand(script))
        except Exception as exc:
            raise ServiceError() from exc

        if result.exit_code != 0:
            raise ServiceUnexpectedError()

        properties = _properties(result)

        load_state = properties.get(PROPERTY_LOAD_STATE)
        if load_state is None:
            raise ServiceUnexpectedError()
        if load_state.strip() == LoadState.NOT_FOUND:
            raise ServiceNotFoundError()

        active_state = properties.get(PROPERTY_ACTIVE_STATE)
        if active_state is None:
            raise ServiceUnexpectedError()
        status = active_state_to_service_status(active_state.strip())

        is_enabled = properties.get("IsEnabled")
        if is_enabled is None:
            raise ServiceUnexpectedError()

        return Service(
            supervisor=SERVICE_SUPERVISOR_SYSTEMD,
            name=name,
            target=runlevel,
            enabled=is_enabled.strip() in _ENABLED,
            status=status,
        )

    def apply(self, service: Service, *, restart: bool = False, reload: bool = False) -> None:
        """Bring *service* into the enabled state and status it sets.

        A started service is also restarted with *restart*, or else reloaded
        with *reload*.
        """
        unit = f"{service.name}.service"
        parts = []

        def step(operation: str) -> str:
            return f"{{ systemctl {operation} '{unit}' --quiet; echo \"systemctl_{operation}_rc=$?\"; }};"

        if service.enabled is not None:
            parts.append(step("enable" if service.enabled else "disable"))

        if service.status is not None:
            if service.status == ServiceStatus.STARTED:
                parts.append(step("start"))
                if restart:
                    parts.append(step("restart"))
                elif reload:
                    parts.append(step("reload"))
            elif service.status == ServiceStatus.STOPPED:
                parts.append(step("stop"))

        script = f"_do() {{ {' '.join(parts)} }}; _do;"
        result = execute_command(self.system, ShellCommand(script))
        if result.exit_code != 0:
            raise ServiceUnexpectedError()

        properties = _properties(result)

        def require(operation: str) -> None:
            rc = properties.get(f"systemctl_{operation}_rc", "")
            if rc != "0":
                raise ServiceOperationError(
                    f"systemctl {operation} '{unit}' returned unexpected exit code {rc}"
                )

        if service.enabled is not None:
            require("enable" if service.enabled else "disable")

        if service.status is not None:
            if service.status == ServiceStatus.STARTED:
                require("start")
            elif service.status == ServiceStatus.STOPPED:
                require("stop")

        for operation in ("restart", "reload"):
            rc: Optional[str] = properties.get(f"systemctl_{operation}_rc")
            if rc is not None and rc != "0":
                raise ServiceOperationError(
                    f"systemctl {operation} '{unit}' returned unexpected exit code {rc}"
                )