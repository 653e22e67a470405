"""Services managed by a service supervisor such as OpenRC or systemd."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ServiceStatus(str, Enum):
    """Run state of a service, independent of the supervisor."""

    STARTED = "started"
    STARTING = "starting"
    STOPPED = "stopped"
    STOPPING = "stopping"
    UNDEFINED = "undefined"

    def is_pending(self) -> bool:
        """Return whether the service is on its way to another state."""
        return self in (ServiceStatus.STARTING, ServiceStatus.STOPPING)


@dataclass
class Service:
    """A service; *enabled* and *status* left as None are not changed or unknown."""

    supervisor: str = ""
    name: str = ""
    target: str = ""
    runlevel: str = ""
    enabled: Optional[bool] = None
    status: Optional[ServiceStatus] = None


class ServiceError(Exception):
    """Failure of an operation on a service."""

    default_message = "service resource"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class ServiceNotFoundError(ServiceError):
    """The service does not exist."""

    default_message = "service not found"


class ServiceRunlevelNotFoundError(ServiceError):
    """The runlevel does not exist."""

    default_message = "runlevel not found"


class ServiceOperationError(ServiceError):
    """Starting, stopping, enabling or another operation failed."""

    default_message = "failed service operation"


class ServiceUnexpectedError(ServiceError):
    """The system answered in a way that was not expected."""

    default_message = "unexpected error"