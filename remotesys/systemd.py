"""systemd unit properties and states."""

from __future__ import annotations

from enum import Enum


class IsEnabledOutput(str, Enum):
    """Output of `systemctl is-enabled UNIT`."""

    ENABLED = "enabled"
    ENABLED_RUNTIME = "enabled-runtime"
    LINKED = "linked"
    LINKED_RUNTIME = "linked-runtime"
    MASKED = "masked"
    MASKED_RUNTIME = "masked-runtime"
    STATIC = "static"
    INDIRECT = "indirect"
    DISABLED = "disabled"
    GENERATED = "generated"
    TRANSIENT = "transient"


IS_ENABLED_OUTPUTS = tuple(IsEnabledOutput)

PROPERTY_LOAD_STATE = "LoadState"


class LoadState(str, Enum):
    """Value of the LoadState property of a unit."""

    NOT_FOUND = "not-found"
    LOADED = "loaded"
    ERROR = "error"
    MASKED = "masked"


PROPERTY_ACTIVE_STATE = "ActiveState"


class ActiveState(str, Enum):
    """Value of the ActiveState property of a unit."""

    ACTIVE = "active"
    RELOADING = "reloading"
    INACTIVE = "inactive"
    FAILED = "failed"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"


class UnitType(str, Enum):
    """Kind of a systemd unit, used as the suffix of its name."""

    SERVICE = "service"
    SOCKET = "socket"
    DEVICE = "device"
    MOUNT = "mount"
    AUTOMOUNT = "automount"
    SWAP = "swap"
    TARGET = "target"
    PATH = "path"
    TIMER = "timer"
    SLICE = "slice"
    SCOPE = "scope"