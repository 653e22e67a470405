import pytest

from remotesys.cmd import Result
from remotesys.openrc import Status
from remotesys.openrc_service import OpenRcServiceClient, openrc_status_to_service_status
from remotesys.services import (
    Service,
    ServiceNotFoundError,
    ServiceOperationError,
    ServiceRunlevelNotFoundError,
    ServiceStatus,
    ServiceUnexpectedError,
)


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


def test_get_started_and_enabled():
    system = FakeSystem((b"status:0\nenabled:1\n", b"", 0))
    service = OpenRcServiceClient(system).get("sshd", "default")
    assert service.status == ServiceStatus.STARTED
    assert service.enabled is True
    assert service.name == "sshd"
    assert service.runlevel == "default"
    assert service.supervisor == "openrc"
    assert "'/etc/runlevels/default/sshd'" in system.commands[0]


def test_get_stopped_and_disabled():
    system = FakeSystem((b"status:3\nenabled:0\n", b"", 0))
    service = OpenRcServiceClient(system).get("sshd", "default")
    assert service.status == ServiceStatus.STOPPED
    assert service.enabled is False


@pytest.mark.parametrize(
    "code, error",
    [(16, ServiceNotFoundError), (17, ServiceRunlevelNotFoundError), (1, ServiceUnexpectedError)],
)
def test_get_exit_codes(code, error):
    system = FakeSystem((b"", b"", code))
    with pytest.raises(error):
        OpenRcServiceClient(system).get("sshd", "default")


@pytest.mark.parametrize(
    "stdout, stderr",
    [
        (b"status:0\nenabled:1\n", b"warning"),
        (b"status:7\nenabled:1\n", b""),
        (b"status:0\nenabled:2\n", b""),
        (b"status:0\n", b""),
        (b"state:0\nenabled:1\n", b""),
    ],
)
def test_get_unexpected_output(stdout, stderr):
    system = FakeSystem((stdout, stderr, 0))
    with pytest.raises(ServiceUnexpectedError):
        OpenRcServiceClient(system).get("sshd", "default")


def test_apply_nothing_runs_no_command():
    system = FakeSystem()
    OpenRcServiceClient(system).apply(Service(name="sshd", runlevel="default"))
    assert system.commands == []


def test_apply_start_with_restart():
    system = FakeSystem((b"rcservice_start_rc=0\nrcservice_restart_rc=0\n", b"", 0))
    OpenRcServiceClient(system).apply(
        Service(name="sshd", runlevel="default", status=ServiceStatus.STARTED),
        restart=True,
        reload=True,
    )
    text = system.commands[0]
    assert text.index("rc-service -q -C 'sshd' start") < text.index("rc-service -q -C 'sshd' restart")
    assert "reload" not in text


def test_apply_enable_and_disable_commands():
    system = FakeSystem((b"", b"", 0), (b"", b"", 0))
    client = OpenRcServiceClient(system)
    client.apply(Service(name="sshd", runlevel="default", enabled=True))
    client.apply(Service(name="sshd", runlevel="default", enabled=False))
    assert "ln -s '/etc/init.d/sshd' '/etc/runlevels/default/sshd'" in system.commands[0]
    assert "rm -f '/etc/runlevels/default/sshd'" in system.commands[1]


def test_apply_failed_stop():
    system = FakeSystem((b"rcservice_stop_rc=1\n", b"", 0))
    with pytest.raises(ServiceOperationError, match="stop"):
        OpenRcServiceClient(system).apply(
            Service(name="sshd", runlevel="default", status=ServiceStatus.STOPPED)
        )


@pytest.mark.parametrize("code, error", [(16, ServiceNotFoundError), (3, ServiceUnexpectedError)])
def test_apply_exit_codes(code, error):
    system = FakeSystem((b"", b"", code))
    with pytest.raises(error):
        OpenRcServiceClient(system).apply(
            Service(name="sshd", runlevel="default", status=ServiceStatus.STARTED)
        )


@pytest.mark.parametrize(
    "status, expected",
    [
        (Status.STOPPING, ServiceStatus.STOPPING),
        (Status.STARTING, ServiceStatus.STARTING),
        (Status.INACTIVE, ServiceStatus.STOPPED),
        (Status.CRASHED, ServiceStatus.STOPPED),
        (Status.STARTED, ServiceStatus.STARTED),
        (Status.STOPPED, ServiceStatus.STOPPED),
        ("bogus", ServiceStatus.UNDEFINED),
    ],
)
def test_openrc_status_mapping(status, expected):
    assert openrc_status_to_service_status(status) == expected