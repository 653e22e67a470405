import pytest

from remotesys.cmd import Result
from remotesys.services import (
    Service,
    ServiceNotFoundError,
    ServiceOperationError,
    ServiceStatus,
    ServiceUnexpectedError,
)
from remotesys.systemd import ActiveState
from remotesys.systemd_service import SystemdServiceClient, active_state_to_service_status


class FakeSystem:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.commands = []

    def execute(self, command):
        self.commands.append(command.text())
        stdout, stderr, code = self.responses.pop(0)
        if command.stdout is not None:
            command.stdout.write(stdout)
        if command.stderr is not None:
            command.stderr.write(stderr)
        return Result(code)


def show(load="loaded", active="active", enabled="enabled"):
    return (
        f"LoadState={load}\nActiveState={active}\nSubState=running\nIsEnabled={enabled}\n"
    ).encode()


def test_get_active_enabled():
    system = FakeSystem((show(), b"", 0))
    service = SystemdServiceClient(system).get("nginx", "multi-user")
    assert service.status == ServiceStatus.STARTED
    assert service.enabled is True
    assert service.target == "multi-user"
    assert service.supervisor == "systemd"
    assert "systemctl show 'nginx.service'" in system.commands[0]


@pytest.mark.parametrize(
    "enabled, expected",
    [("enabled", True), ("enabled-runtime", True), ("static", False), ("disabled", False), ("", False)],
)
def test_get_enabled_values(enabled, expected):
    system = FakeSystem((show(enabled=enabled), b"", 0))
    assert SystemdServiceClient(system).get("nginx", "").enabled is expected


def test_get_not_found():
    system = FakeSystem((show(load="not-found", active="inactive"), b"", 0))
    with pytest.raises(ServiceNotFoundError):
        SystemdServiceClient(system).get("nginx", "")


@pytest.mark.parametrize(
    "stdout, code",
    [
        (show(), 1),
        (b"ActiveState=active\nIsEnabled=enabled\n", 0),
        (b"LoadState=loaded\nIsEnabled=enabled\n", 0),
        (b"LoadState=loaded\nActiveState=active\n", 0),
    ],
)
def test_get_unexpected(stdout, code):
    system = FakeSystem((stdout, b"", code))
    with pytest.raises(ServiceUnexpectedError):
        SystemdServiceClient(system).get("nginx", "")


def test_apply_enable_and_start():
    system = FakeSystem((b"systemctl_enable_rc=0\nsystemctl_start_rc=0\n", b"", 0))
    SystemdServiceClient(system).apply(
        Service(name="nginx", enabled=True, status=ServiceStatus.STARTED)
    )
    text = system.commands[0]
    assert "systemctl enable 'nginx.service' --quiet" in text
    assert text.index("enable") < text.index("systemctl start")


def test_apply_missing_enable_result():
    system = FakeSystem((b"systemctl_start_rc=0\n", b"", 0))
    with pytest.raises(ServiceOperationError, match="enable"):
        SystemdServiceClient(system).apply(
            Service(name="nginx", enabled=True, status=ServiceStatus.STARTED)
        )


def test_apply_failed_stop_reports_exit_code():
    system = FakeSystem((b"systemctl_stop_rc=5\n", b"", 0))
    with pytest.raises(ServiceOperationError, match="exit code 5"):
        SystemdServiceClient(system).apply(Service(name="nginx", status=ServiceStatus.STOPPED))


def test_apply_failed_reload():
    system = FakeSystem((b"systemctl_start_rc=0\nsystemctl_reload_rc=1\n", b"", 0))
    with pytest.raises(ServiceOperationError, match="reload"):
        SystemdServiceClient(system).apply(
            Service(name="nginx", status=ServiceStatus.STARTED), reload=True
        )


def test_apply_nonzero_exit():
    system = FakeSystem((b"", b"", 2))
    with pytest.raises(ServiceUnexpectedError):
        SystemdServiceClient(system).apply(Service(name="nginx", enabled=False))


@pytest.mark.parametrize(
    "state, expected",
    [
        (ActiveState.ACTIVE, ServiceStatus.STARTED),
        (ActiveState.RELOADING, ServiceStatus.UNDEFINED),
        (ActiveState.INACTIVE, ServiceStatus.STOPPED),
        (ActiveState.FAILED, ServiceStatus.STOPPED),
        (ActiveState.ACTIVATING, ServiceStatus.STARTED),
        (ActiveState.DEACTIVATING, ServiceStatus.STOPPED),
        ("bogus", ServiceStatus.UNDEFINED),
    ],
)
def test_active_state_mapping(state, expected):
    assert active_state_to_service_status(state) == expected