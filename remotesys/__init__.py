"""Clients that manage files, users, groups, packages and services on a system through shell commands."""

__version__ = "0.1.0"