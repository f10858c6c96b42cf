"""Changelog source backed by a JSON export of the query layer.

Expected layout::

    {"projects": {
        "<name>": {
            "versions": ["<id>", ...],
            "changelogs": {
                "<id>": {"nodes": [...], "dependencies": [...]}
            }
        }
    }}
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from depdelta.source.base import ChangelogNotFoundError, ChangelogSource, DependencyRow, NodeRow

logger = logging.getLogger(__name__)


def _node_row(raw: dict) -> NodeRow:
    return NodeRow(
        path=raw["path"],
        name=raw["name"],
        labels=list(raw.get("labels", [])),
    )


def _dependency_row(raw: dict) -> DependencyRow:
    return DependencyRow(
        path=raw["path"],
        name=raw["name"],
        labels=list(raw.get("labels", [])),
        added=bool(raw.get("added", True)),
        user_path=raw.get("user_path", ""),
        user_labels=list(raw.get("user_labels", [])),
        user_name=raw.get("user_name", ""),
    )


class JsonChangelogSource(ChangelogSource):
    def __init__(self, path: Path | None = None, data: dict[str, Any] | None = None):
        if path is None and data is None:
            raise ValueError("JsonChangelogSource needs a path or data")
        self.path = Path(path) if path is not None else None
        self._data = data

    def _projects(self) -> dict[str, Any]:
        if self._data is None:
            logger.debug("Reading changelog export %s", self.path)
            self._data = json.loads(self.path.read_text(encoding="utf-8"))
        return self._data.get("projects", {})

    def _project(self, project: str) -> dict[str, Any]:
        projects = self._projects()
        if project not in projects:
            raise ChangelogNotFoundError(f"Unknown project: {project}")
        return projects[project]

    def _changelog(self, project: str, version: str) -> dict[str, Any]:
        changelogs = self._project(project).get("changelogs", {})
        if version not in changelogs:
            raise ChangelogNotFoundError(f"Unknown changelog {version!r} for {project}")
        return changelogs[version]

    async def project_names(self) -> list[str]:
        projects = await asyncio.to_thread(self._projects)
        return list(projects)

    async def changelog_ids(self, project: str) -> list[str]:
        entry = await asyncio.to_thread(self._project, project)
        return list(entry.get("versions") or entry.get("changelogs", {}))

    async def fetch_nodes(self, project: str, version: str) -> list[NodeRow]:
        changelog = await asyncio.to_thread(self._changelog, project, version)
        return [_node_row(raw) for raw in changelog.get("nodes", [])]

    async def fetch_dependencies(self, project: str, version: str) -> list[DependencyRow]:
        changelog = await asyncio.to_thread(self._changelog, project, version)
        return [_dependency_row(raw) for raw in changelog.get("dependencies", [])]
