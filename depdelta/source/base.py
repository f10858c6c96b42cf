"""Abstract changelog source: the boundary to the external query layer."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field


class ChangelogNotFoundError(LookupError):
    """Unknown project or changelog version."""


@dataclass(frozen=True)
class NodeRow:
    """An entity touched by a changelog: its full path, name and type labels."""
    path: str
    name: str
    labels: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DependencyRow:
    """A dependency gained or lost by a user entity between two versions."""
    path: str
    name: str
    labels: list[str] = field(default_factory=list)
    added: bool = True
    user_path: str = ""
    user_labels: list[str] = field(default_factory=list)
    user_name: str = ""


class ChangelogSource(abc.ABC):
    """Async source of changelog rows.

    Paths are fully qualified, i.e. still prefixed with the project name.
    """

    @abc.abstractmethod
    async def project_names(self) -> list[str]:
        """Names of the projects with changelogs."""

    @abc.abstractmethod
    async def changelog_ids(self, project: str) -> list[str]:
        """Changelog version identifiers for *project*."""

    @abc.abstractmethod
    async def fetch_nodes(self, project: str, version: str) -> list[NodeRow]:
        """Every package, class and method on a changed path."""

    @abc.abstractmethod
    async def fetch_dependencies(self, project: str, version: str) -> list[DependencyRow]:
        """Every added or deleted dependency of the changelog."""
