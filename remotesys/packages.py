"""Packages installed on a system and operations on lists of them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from operator import attrgetter
from typing import Callable, Dict, Iterable

Predicate = Callable[["Package"], bool]


class PackageState(IntEnum):
    """Whether a package is, or is to be, installed."""

    INSTALLED = 0
    NOT_INSTALLED = 1


@dataclass
class PackageVersion:
    """Versions of a package: as required, as installed and as available."""

    required: str = ""
    installed: str = ""
    available: str = ""


@dataclass
class Package:
    """A package managed by the package manager named in *manager*."""

    name: str
    manager: str = ""
    version: PackageVersion = field(default_factory=PackageVersion)
    state: PackageState = PackageState.INSTALLED


class Packages(list):
    """A list of packages."""

    def names(self) -> list[str]:
        """Return the names of the packages in order."""
        return [package.name for package in self]

    def filter(self, predicate: Predicate) -> "Packages":
        """Return the packages for which *predicate* is true."""
        return Packages(package for package in self if predicate(package))

    def to_map(self) -> Dict[str, Package]:
        """Return the packages indexed by name; a later duplicate wins."""
        return {package.name: package for package in self}

    def sorted_by_name(self) -> "Packages":
        """Return the packages sorted by name, keeping the order of equal names."""
        return Packages(sorted(self, key=attrgetter("name")))


def packages_from_map(packages: Dict[str, Package]) -> Packages:
    """Return the packages held in a map indexed by name."""
    return Packages(packages.values())


def package_name_filter(*names: str) -> Predicate:
    """Return a predicate that accepts packages with one of *names*."""
    wanted: Iterable[str] = frozenset(names)
    return lambda package: package.name in wanted


def package_state_filter(state: PackageState) -> Predicate:
    """Return a predicate that accepts packages in *state*."""
    return lambda package: package.state == state