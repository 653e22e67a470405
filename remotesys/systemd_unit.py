"""Units of any type managed by systemd: services, sockets, timers and so on."""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from dotenv import dotenv_values

from remotesys.cmd import System
from remotesys.command import CommandResult, ShellCommand, execute_command
from remotesys.systemd import (
    PROPERTY_ACTIVE_STATE,
    PROPERTY_LOAD_STATE,
    ActiveState,
    IsEnabledOutput,
    LoadState,
)


class SystemdUnitStatus(str, Enum):
    """Run state of a systemd unit."""

    STARTED = "started"
    STARTING = "starting"
    STOPPED = "stopped"
    STOPPING = "stopping"
    UNDEFINED = "undefined"

    def is_pending(self) -> bool:
        """Return whether the unit is on its way to another state."""
        return self in (SystemdUnitStatus.STARTING, SystemdUnitStatus.STOPPING)


@dataclass
class SystemdUnit:
    """A unit; *enabled* and *status* left as None are not changed or unknown."""

    unit_type: str = ""
    name: str = ""
    enabled: Optional[bool] = None
    status: Optional[SystemdUnitStatus] = None

    @property
    def unit_name(self) -> str:
        """Return the full unit name, such as ``sshd.service``."""
        return f"{self.name}.{self.unit_type}"


class SystemdUnitError(Exception):
    """Failure of an operation on a systemd unit."""

    default_message = "systemd unit resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class SystemdUnitNotFoundError(SystemdUnitError):
    """The unit does not exist."""

    default_message = "systemd unit not found"


class SystemdUnitOperationError(SystemdUnitError):
    """Starting, stopping, enabling or another operation failed."""

    default_message = "failed systemd unit operation"


class SystemdUnitUnexpectedError(SystemdUnitError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"


_UNIT_STATUS = {
    ActiveState.ACTIVE: SystemdUnitStatus.STARTED,
    ActiveState.RELOADING: SystemdUnitStatus.UNDEFINED,
    ActiveState.INACTIVE: SystemdUnitStatus.STOPPED,
    ActiveState.FAILED: SystemdUnitStatus.STOPPED,
    ActiveState.ACTIVATING: SystemdUnitStatus.STARTED,
    ActiveState.DEACTIVATING: SystemdUnitStatus.STOPPED,
}

_ENABLED = (IsEnabledOutput.ENABLED, IsEnabledOutput.ENABLED_RUNTIME)


def active_state_to_unit_status(state: ActiveState) -> SystemdUnitStatus:
    """Return the unit status that corresponds to a systemd ActiveState."""
    try:
        return _UNIT_STATUS[ActiveState(state)]
    except ValueError:
        return SystemdUnitStatus.UNDEFINED


def _properties(result: CommandResult) -> Dict[str, str]:
    try:
        values = dotenv_values(stream=io.StringIO(result.stdout_text()), interpolate=False)
    except Exception as exc:
        raise SystemdUnitUnexpectedError(str(exc)) from exc
    return {key: value or "" for key, value in values.items()}


class SystemdUnitClient:
    """Reads and changes systemd units on a system."""

    def __init__(self, system: System) -> None:
        self.system = system

    def get(self, unit_type: str, name: str) -> SystemdUnit:
        """Return the unit *name* of *unit_type* with its status and whether it is enabled."""
        unit = f"{name}.{unit_type}"
        script = (
            f"_do() {{ systemctl daemon-reload; systemctl show '{unit}' "
            "--property=LoadState,ActiveState,SubState --plain --no-page; "
            f"echo \"IsEnabled=$(systemctl is-enabled '{unit}' 2> /dev/null || true)\"; }}; _do;"
        )
        try:
            result = execute_command(self.system, ShellCommand(script))
        except Exception as exc:
            raise SystemdUnitError() from exc

        if result.exit_code != 0:
            raise SystemdUnitUnexpectedError()

        properties = _properties(result)

        load_state = properties.get(PROPERTY_LOAD_STATE)
        if load_state is None:
            raise SystemdUnitUnexpectedError()
        if load_state.strip() == LoadState.NOT_FOUND:
            raise SystemdUnitNotFoundError()

        active_state = properties.get(PROPERTY_ACTIVE_STATE)
        if active_state is None:
            raise SystemdUnitUnexpectedError()
        status = active_state_to_unit_status(active_state.strip())

        is_enabled = properties.get("IsEnabled")
        if is_enabled is None:
            raise SystemdUnitUnexpectedError()

        return SystemdUnit(
            unit_type=unit_type,
            name=name,
            enabled=is_enabled.strip() in _ENABLED,
            status=status,
        )

    def apply(self, unit: SystemdUnit, *, restart: bool = False, reload: bool = False) -> None:
        """Bring *unit* into the enabled state and status it sets.

        A started unit is also restarted with *restart*, or else reloaded
        with *reload*.
        """
        full_name = unit.unit_name
        parts = []

        def step(operation: str) -> str:
            return (
                f"{{ systemctl {operation} '{full_name}' --quiet; "
                f"echo \"systemctl_{operation}_rc=$?\"; }};"
            )

        if unit.enabled is not None:
            parts.append(step("enable" if unit.enabled else "disable"))

        if unit.status is not None:
            if unit.status == SystemdUnitStatus.STARTED:
                parts.append(step("start"))
                if restart:
                    parts.append(step("restart"))
                elif reload:
                    parts.append(step("reload"))
            elif unit.status == SystemdUnitStatus.STOPPED:
                parts.append(step("stop"))

        script = f"_do() {{ {' '.join(parts)} }}; _do;"
        result = execute_command(self.system, ShellCommand(script))
        if result.exit_code != 0:
            raise SystemdUnitUnexpectedError()

        properties = _properties(result)

        def fail(operation: str, rc: str) -> SystemdUnitOperationError:
            return SystemdUnitOperationError(
                f"systemctl {operation} '{full_name}' returned unexpected exit code {rc}"
            )

        def require(operation: str) -> None:
            rc = properties.get(f"systemctl_{operation}_rc", "")
            if rc != "0":
                raise fail(operation, rc)

        if unit.enabled is not None:
            require("enable" if unit.enabled else "disable")

        if unit.status is not None:
            if unit.status == SystemdUnitStatus.STARTED:
                require("start")
            elif unit.status == SystemdUnitStatus.STOPPED:
                require("stop")

        for operation in ("restart", "reload"):
            rc: Optional[str] = properties.get(f"systemctl_{operation}_rc")
            if rc is not None and rc != "0":
                raise fail(operation, rc)