import pytest

from remotesys.cmd import Result
from remotesys.systemd import ActiveState
from remotesys.systemd_unit import (
    SystemdUnit,
    SystemdUnitClient,
    SystemdUnitError,
    SystemdUnitNotFoundError,
    SystemdUnitOperationError,
    SystemdUnitStatus,
    SystemdUnitUnexpectedError,
    active_state_to_unit_status,
)


class FakeSystem:
    def __init__(self, stdout=b"", stderr=b"", exit_code=0):
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.commands = []

    def execute(self, command):
        self.commands.append(command.text())
        if command.stdout is not None:
            command.stdout.write(self.stdout)
        if command.stderr is not None:
            command.stderr.write(self.stderr)
        return Result(self.exit_code)


class FailingSystem:
    def execute(self, command):
        raise OSError("connection lost")


SHOW_ACTIVE = b"LoadState=loaded\nActiveState=active\nSubState=running\nIsEnabled=enabled\n"


def test_get_parses_active_enabled_unit():
    system = FakeSystem(stdout=SHOW_ACTIVE)
    unit = SystemdUnitClient(system).get("socket", "sshd")
    assert unit == SystemdUnit(
        unit_type="socket", name="sshd", enabled=True, status=SystemdUnitStatus.STARTED
    )
    assert "systemctl show 'sshd.socket'" in system.commands[0]
    assert "systemctl is-enabled 'sshd.socket'" in system.commands[0]


def test_get_disabled_inactive_unit():
    system = FakeSystem(
        stdout=b"LoadState=loaded\nActiveState=inactive\nSubState=dead\nIsEnabled=disabled\n"
    )
    unit = SystemdUnitClient(system).get("timer", "backup")
    assert unit.enabled is False
    assert unit.status == SystemdUnitStatus.STOPPED


def test_get_enabled_runtime_counts_as_enabled():
    system = FakeSystem(
        stdout=b"LoadState=loaded\nActiveState=active\nSubState=running\nIsEnabled=enabled-runtime\n"
    )
    assert SystemdUnitClient(system).get("service", "app").enabled is True


def test_get_not_found():
    system = FakeSystem(stdout=b"LoadState=not-found\nActiveState=inactive\nIsEnabled=\n")
    with pytest.raises(SystemdUnitNotFoundError):
        SystemdUnitClient(system).get("service", "missing")


@pytest.mark.parametrize(
    "stdout",
    [
        b"ActiveState=active\nIsEnabled=enabled\n",
        b"LoadState=loaded\nIsEnabled=enabled\n",
        b"LoadState=loaded\nActiveState=active\n",
    ],
)
def test_get_missing_property_is_unexpected(stdout):
    with pytest.raises(SystemdUnitUnexpectedError):
        SystemdUnitClient(FakeSystem(stdout=stdout)).get("service", "app")


def test_get_nonzero_exit_is_unexpected():
    with pytest.raises(SystemdUnitUnexpectedError):
        SystemdUnitClient(FakeSystem(stdout=SHOW_ACTIVE, exit_code=1)).get("service", "app")


def test_get_system_failure_is_unit_error():
    with pytest.raises(SystemdUnitError):
        SystemdUnitClient(FailingSystem()).get("service", "app")


def test_apply_enable_and_start_succeeds():
    system = FakeSystem(stdout=b"systemctl_enable_rc=0\nsystemctl_start_rc=0\n")
    unit = SystemdUnit(unit_type="timer", name="backup", enabled=True, status=SystemdUnitStatus.STARTED)
    assert SystemdUnitClient(system).apply(unit) is None
    script = system.commands[0]
    assert "systemctl enable 'backup.timer' --quiet" in script
    assert "systemctl start 'backup.timer' --quiet" in script
    assert "restart" not in script and "reload" not in script


def test_apply_restart_takes_precedence_over_reload():
    system = FakeSystem(stdout=b"systemctl_start_rc=0\nsystemctl_restart_rc=0\n")
    unit = SystemdUnit(unit_type="service", name="app", status=SystemdUnitStatus.STARTED)
    SystemdUnitClient(system).apply(unit, restart=True, reload=True)
    assert "systemctl restart 'app.service'" in system.commands[0]
    assert "systemctl reload" not in system.commands[0]


def test_apply_reload_when_started():
    system = FakeSystem(stdout=b"systemctl_start_rc=0\nsystemctl_reload_rc=0\n")
    unit = SystemdUnit(unit_type="service", name="app", status=SystemdUnitStatus.STARTED)
    SystemdUnitClient(system).apply(unit, reload=True)
    assert "systemctl reload 'app.service'" in system.commands[0]


def test_apply_stop_and_disable():
    system = FakeSystem(stdout=b"systemctl_disable_rc=0\nsystemctl_stop_rc=0\n")
    unit = SystemdUnit(unit_type="socket", name="app", enabled=False, status=SystemdUnitStatus.STOPPED)
    SystemdUnitClient(system).apply(unit, restart=True)
    script = system.commands[0]
    assert "systemctl disable 'app.socket'" in script
    assert "systemctl stop 'app.socket'" in script
    assert "restart" not in script


def test_apply_failed_start_raises_operation_error():
    system = FakeSystem(stdout=b"systemctl_start_rc=1\n")
    unit = SystemdUnit(unit_type="timer", name="backup", status=SystemdUnitStatus.STARTED)
    with pytest.raises(SystemdUnitOperationError) as info:
        SystemdUnitClient(system).apply(unit)
    assert "systemctl start 'backup.timer' returned unexpected exit code 1" in str(info.value)


def test_apply_missing_enable_rc_raises_operation_error():
    system = FakeSystem(stdout=b"")
    unit = SystemdUnit(unit_type="service", name="app", enabled=True)
    with pytest.raises(SystemdUnitOperationError):
        SystemdUnitClient(system).apply(unit)


def test_apply_failed_reload_raises_operation_error():
    system = FakeSystem(stdout=b"systemctl_start_rc=0\nsystemctl_reload_rc=3\n")
    unit = SystemdUnit(unit_type="service", name="app", status=SystemdUnitStatus.STARTED)
    with pytest.raises(SystemdUnitOperationError) as info:
        SystemdUnitClient(system).apply(unit, reload=True)
    assert "systemctl reload 'app.service'" in str(info.value)


def test_apply_nonzero_exit_is_unexpected():
    system = FakeSystem(stdout=b"systemctl_enable_rc=0\n", exit_code=2)
    unit = SystemdUnit(unit_type="service", name="app", enabled=True)
    with pytest.raises(SystemdUnitUnexpectedError):
        SystemdUnitClient(system).apply(unit)


@pytest.mark.parametrize(
    "state, expected",
    [
        (ActiveState.ACTIVE, SystemdUnitStatus.STARTED),
        (ActiveState.RELOADING, SystemdUnitStatus.UNDEFINED),
        (ActiveState.INACTIVE, SystemdUnitStatus.STOPPED),
        (ActiveState.FAILED, SystemdUnitStatus.STOPPED),
        (ActiveState.ACTIVATING, SystemdUnitStatus.STARTED),
        (ActiveState.DEACTIVATING, SystemdUnitStatus.STOPPED),
        ("bogus", SystemdUnitStatus.UNDEFINED),
    ],
)
def test_active_state_to_unit_status(state, expected):
    assert active_state_to_unit_status(state) == expected


@pytest.mark.parametrize(
    "status, pending",
    [
        (SystemdUnitStatus.STARTING, True),
        (SystemdUnitStatus.STOPPING, True),
        (SystemdUnitStatus.STARTED, False),
        (SystemdUnitStatus.STOPPED, False),
        (SystemdUnitStatus.UNDEFINED, False),
    ],
)
def test_is_pending(status, pending):
    assert status.is_pending() is pending


def test_error_hierarchy_and_messages():
    assert issubclass(SystemdUnitNotFoundError, SystemdUnitError)
    assert issubclass(SystemdUnitOperationError, SystemdUnitError)
    assert issubclass(SystemdUnitUnexpectedError, SystemdUnitError)
    assert str(SystemdUnitNotFoundError()) == "systemd unit not found"
    assert str(SystemdUnitOperationError()) == "failed systemd unit operation"