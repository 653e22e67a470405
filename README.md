# remotesys

`remotesys` manages the state of a Unix-like system. It builds POSIX shell
commands, hands them to a system to run, and reads back the output and exit
codes. It does not run anything itself and opens no connections. You supply
a `System`: any object with an `execute(command)` method that runs a
`remotesys.cmd.Command` somewhere and returns a `remotesys.cmd.Result`.

The clients cover:

- regular files, folders and symbolic links: `remotesys.files`
- groups and users: `remotesys.groups`, `remotesys.users`
- the OS release and the current identity: `remotesys.info`
- packages through apk, apt or snap: `remotesys.apk`, `remotesys.apt`,
  `remotesys.snap`, with shared types in `remotesys.packages`
- services under OpenRC or systemd: `remotesys.openrc_service`,
  `remotesys.systemd_service`, with shared types in `remotesys.services`
- systemd units of any type: `remotesys.systemd_unit`

## Installation

```
pip install remotesys
```

The one runtime dependency is `python-dotenv`. It reads the `KEY=value` output
of the service and unit commands.

## Providing a system

A `Command` has these members:

- `text()`, which returns the command line
- `stdin`, `stdout` and `stderr`, which are binary streams or `None`

A system runs `command.text()` in a shell. If `stdin` is set, it feeds that
stream to the command. It writes what the command prints to `stdout` and
`stderr`, where those are set. Then it returns `Result(exit_code=...)`.

Here is a system that answers from a table. It is handy in tests:

```python
from remotesys.cmd import Command, Result

class CannedSystem:
    def __init__(self, answers):
        self.answers = answers  # command text -> (stdout bytes, exit code)

    def execute(self, command: Command) -> Result:
        out, code = self.answers.get(command.text(), (b"", 127))
        if command.stdout is not None:
            command.stdout.write(out)
        return Result(exit_code=code)
```

`remotesys.cmd` also provides these helpers:

- `sh_middleware()` returns a function that wraps a command so that it runs
  as `/bin/sh -c '<quoted command>'`. `sudo_sh_middleware()` does the same
  with `sudo /bin/sh -c`. The wrapped command keeps the streams of the
  original.
- `BufferedCommand` collects its output in `stdout_buf` and `stderr_buf`.
- `combined_output(out)` returns `stdout`/`stderr` keyword arguments. Both
  point at one `SyncWriter`, which serialises writes to `out`.

`remotesys.command.execute_command(system, command)` runs anything that has a
`command()` method. An optional `stdin` attribute is used as input. The
function returns a `CommandResult` with `stdout`, `stderr` and `exit_code`,
plus these methods:

- `stdout_text()` and `stderr_text()`
- `check()`, which raises `CommandError` when the exit code is not zero

## Using the clients

```python
from remotesys.groups import Group, GroupClient, GroupNotFoundError
from remotesys.files import File, FileClient, Folder, FolderClient

groups = GroupClient(system)
gid = groups.create(Group(name="deploy"))   # gid=-1 lets the system choose
try:
    group = groups.get(gid)
except GroupNotFoundError:
    ...

FolderClient(system).create(Folder(path="/srv/app", mode=0o755))
FileClient(system, compress=True).create(
    File(path="/srv/app/motd", content=b"hello\n", mode=0o644)
)
```

### Files, folders and links

`FileClient`, `FolderClient` and `LinkClient` each have `create`, `update` and
`delete`.

- `create` fails if anything already exists at the path.
- `update` applies only the fields that are set. That means a non-zero mode,
  a non-empty content, a target, a uid or gid other than `-1`, or a user or
  group name. If nothing is set, it does nothing.
- File content may be `bytes` or a binary stream. With `compress=True` the
  content is gzip-compressed before it is sent.

### Users and groups

`UserClient` and `GroupClient` have `get`, `create`, `update` and `delete`.

- `get` reads the `getent` entry by uid or gid.
- `create` returns the new uid or gid.
- `delete` is not an error when the user or group is already gone.
- `parse_passwd_entry` and `parse_group_entry` parse single `getent` lines.

### System information

`InfoClient` has two methods:

- `get_identity()` parses the output of `id`.
- `get_release()` reads `/etc/os-release`. For Debian, Ubuntu, CentOS and
  RHEL it also fills in the point release.

### Packages

`ApkPackageClient`, `AptPackageClient` and `SnapPackageClient` each have two
methods:

- `get()` returns a `Packages` list sorted by name.
- `apply(packages)` installs or removes packages according to each
  `Package.state`, which is a `PackageState`.

The apk client works through `/etc/apk/world` and `apk upgrade`. The apt
client uses `dpkg-query` and a single `apt-get install` run. The snap client
runs one `snap` command per package.

The output parsers are also public:

- `parse_apk_version`, `parse_apk_world` and `render_apk_world`
- `parse_dpkg_query`
- `parse_snap_list`

`Packages` has these methods: `names()`, `filter(predicate)`, `to_map()` and
`sorted_by_name()`. `package_name_filter(*names)` and
`package_state_filter(state)` build predicates for `filter`.

### Services and units

`OpenRcServiceClient.get(name, runlevel)` and
`SystemdServiceClient.get(name, runlevel)` return a `Service`. Its `enabled`
is a bool and its `status` is a `ServiceStatus`.

`apply(service, restart=False, reload=False)` enables or disables the service
and starts or stops it, as the service asks. A started service is then
restarted if `restart` is set, or otherwise reloaded if `reload` is set.

`SystemdUnitClient` works the same way for any unit type:

- `get(unit_type, name)` returns a `SystemdUnit`.
- `apply(unit, restart=..., reload=...)` changes the unit.

The enums for OpenRC and systemd states are in `remotesys.openrc` and
`remotesys.systemd`.

### Errors

Failures are raised as exceptions. Each resource has a base class:

- `FileResourceError`, `FolderError`, `LinkError`
- `GroupError`, `UserError`, `InfoError`
- `ApkPackageError`, `AptPackageError`, `SnapPackageError`
- `ServiceError`, `SystemdUnitError`

Each base class has subclasses for the specific cases, such as
`...NotFoundError`, `...ExistsError`, `...UnexpectedError` and
`...OperationError`.

## Helpers

`remotesys.heredoc.doc(raw)` removes the common indentation of a multi-line
string. A leading newline is dropped. If there is none, the first line is
kept unchanged. `docf(raw, *args)` does the same and then applies `%`
formatting with `args`.

`remotesys.commands` holds small command builders: `SimpleCommand`,
`ChownCommand`, `ChgrpCommand`, `ChmodCommand`, `MkdirCommand`, `CatCommand`
and `CompositeCommand`. It also has `cat(system, path)`, which returns the
contents of a file.

## What it does not do

- There is no SSH or other transport. Every command goes through the
  `System` you supply.
- The file, folder and link clients create, change and delete. They do not
  read back the mode, owner or content of an existing path.
- There is no command-line program. The package is a library.

## Running the tests

```
pip install -e ".[test]"
pytest
```