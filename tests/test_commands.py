import shlex

import pytest

from remotesys.cmd import Result
from remotesys.command import CommandError
from remotesys.commands import (
    CatCommand,
    ChgrpCommand,
    ChmodCommand,
    ChownCommand,
    CompositeCommand,
    MkdirCommand,
    SimpleCommand,
    cat,
)


class FakeSystem:
    def __init__(self, out=b"", exit_code=0):
        self.out = out
        self.exit_code = exit_code
        self.texts = []

    def execute(self, command):
        self.texts.append(command.text())
        if command.stdout is not None:
            command.stdout.write(self.out)
        return Result(self.exit_code)


def test_simple_command():
    assert SimpleCommand("id -u").command() == "id -u"


def test_chmod():
    assert ChmodCommand("/tmp/f", 0o755).command() == "chmod 755 /tmp/f"


@pytest.mark.parametrize("path, mode", [("", 0o644), ("/f", 0), ("/f", 0o7000)])
def test_chmod_empty_when_nothing_to_do(path, mode):
    assert ChmodCommand(path, mode).command() == ""


def test_chmod_masks_non_permission_bits():
    assert ChmodCommand("/f", 0o4755).command() == ChmodCommand("/f", 0o755).command()


def test_mkdir_with_mode():
    assert MkdirCommand("/tmp/d", 0o700).command() == "mkdir -m 700 -p /tmp/d"


def test_mkdir_without_mode():
    assert MkdirCommand("/tmp/d").command() == "mkdir -p /tmp/d"


def test_mkdir_empty_path():
    assert MkdirCommand("", 0o755).command() == ""


@pytest.mark.parametrize("path, user", [("", "root"), ("/p", "")])
def test_chown_empty_when_incomplete(path, user):
    assert ChownCommand(path, user, "wheel").command() == ""


def test_chown_user_only():
    assert ChownCommand("/p", "alice").command().split() == ["chown", "alice", "/p"]


def test_chown_user_and_group_no_dereference():
    parts = ChownCommand("/p", "alice", "staff", no_dereference=True).command().split()
    assert parts == ["chown", "-h", "alice:staff", "/p"]


@pytest.mark.parametrize("path, group", [("", "staff"), ("/p", "")])
def test_chgrp_empty_when_incomplete(path, group):
    assert ChgrpCommand(path, group).command() == ""


@pytest.mark.parametrize("no_dereference, expected_flags", [(False, []), (True, ["-h"])])
def test_chgrp(no_dereference, expected_flags):
    parts = ChgrpCommand("/p", "staff", no_dereference=no_dereference).command().split()
    assert parts == ["chgrp", *expected_flags, "staff", "/p"]


def test_cat_command_quotes_path():
    assert shlex.split(CatCommand("/etc/my file").command()) == ["cat", "/etc/my file"]
    assert CatCommand("").command() == ""


def test_composite_joins_with_and():
    parts = [SimpleCommand("a"), MkdirCommand("/d"), ChmodCommand("/d", 0o700)]
    text = CompositeCommand(parts).command()
    assert text.split(" && ") == [part.command() for part in parts]


def test_composite_empty():
    assert CompositeCommand().command() == ""


def test_cat_returns_stdout():
    system = FakeSystem(out=b"contents")
    assert cat(system, "/etc/hosts") == b"contents"
    assert system.texts == [CatCommand("/etc/hosts").command()]


def test_cat_raises_on_failure():
    with pytest.raises(CommandError, match="non-zero exit code") as info:
        cat(FakeSystem(exit_code=1), "/missing")
    assert info.value.exit_code == 1