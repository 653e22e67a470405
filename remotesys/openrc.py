"""OpenRC service states."""

from __future__ import annotations

from enum import Enum

DEFAULT_RUNLEVEL = "default"


class Status(str, Enum):
    """State of an OpenRC service."""

    STOPPING = "stopping"
    STARTING = "starting"
    INACTIVE = "inactive"
    CRASHED = "crashed"
    STARTED = "started"
    STOPPED = "stopped"


_STATUS_BY_EXIT_CODE = {
    4: Status.STOPPING,
    8: Status.STARTING,
    16: Status.INACTIVE,
    32: Status.CRASHED,
    0: Status.STARTED,
    3: Status.STOPPED,
}


def status_from_exit_code(exit_code: int) -> Status:
    """Return the status that `rc-service NAME status` reports by *exit_code*."""
    try:
        return _STATUS_BY_EXIT_CODE[exit_code]
    except KeyError:
        raise ValueError(f"invalid openrc service status code: {exit_code}") from None