[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "remotesys"
version = "0.1.0"
description = "Clients that manage files, users, groups, packages and services on a system through shell commands"
requires-python = ">=3.10"
dependencies = [
    "python-dotenv",
]
keywords = ["systems administration", "shell", "packages", "services", "systemd", "openrc", "apk", "apt", "snap"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["remotesys"]

[tool.pytest.ini_options]
addopts = "-ra"
