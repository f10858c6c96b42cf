"""Changelog session: holds the canonical record set and derives views from it.

The record set (``tree_data``) is replaced wholesale by each successful
changelog load. Trees and graphs are rebuilt in full from it whenever the
display option, the filter text or the data change.

Concurrent loads: every load takes a generation number and only the most
recently *requested* load may publish. A slower, superseded fetch that
completes later is discarded instead of overwriting newer data.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from depdelta.graph import Graph, build_graph
from depdelta.models import Diagnostics, DisplayOption, Record, TreeItemNode, ViewerConfig, walk_forest
from depdelta.source import ChangelogSource, assemble_records
from depdelta.tree import build_tree, filter_records

logger = logging.getLogger(__name__)

Subscriber = Callable[[list[TreeItemNode]], None]


class ChangelogSession:
    def __init__(self, source: ChangelogSource, config: ViewerConfig | None = None):
        self.source = source
        self.config = config or ViewerConfig()
        self.display_option: DisplayOption = self.config.display_option
        self.group_nodes = self.config.group_nodes
        self.project_names: list[str] = []
        self.changelog_ids: list[str] = []
        self.selected_project: str | None = None
        self.selected_version: str | None = None
        self.filter_text = ""
        self.tree_data: list[Record] = []
        self.diagnostics = Diagnostics()
        self.filter_diagnostics = Diagnostics()
        self._data: list[TreeItemNode] = []
        self._subscribers: list[Subscriber] = []
        self._generation = 0

    @property
    def root(self) -> str:
        return self.config.root

    @property
    def data(self) -> list[TreeItemNode]:
        """The current forest."""
        return self._data

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call *callback* with every new forest. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, forest: list[TreeItemNode]) -> None:
        self._data = forest
        for callback in list(self._subscribers):
            try:
                callback(forest)
            except Exception:
                logger.exception("Tree subscriber %r failed", callback)

    # ── Loading ─────────────────────────────────────────────

    async def load_projects(self) -> list[str]:
        self.project_names = await self.source.project_names()
        return self.project_names

    async def select_project(self, project: str) -> list[str]:
        """Select *project* and load its changelog identifiers."""
        self.changelog_ids = await self.source.changelog_ids(project)
        self.selected_project = project
        return self.changelog_ids

    async def load_changelog(self, project: str, version: str) -> bool:
        """Fetch and install one changelog. Returns False if superseded."""
        self._generation += 1
        generation = self._generation
        logger.info("Loading changelog %s of %s", version, project)

        # Both fetches must resolve before anything is rebuilt.
        nodes, dependencies = await asyncio.gather(
            self.source.fetch_nodes(project, version),
            self.source.fetch_dependencies(project, version),
        )
        if generation != self._generation:
            logger.info("Discarding superseded changelog %s of %s", version, project)
            return False

        result = assemble_records(nodes, dependencies, project, root=self.root)
        self.tree_data = result.records
        self.diagnostics = result.diagnostics
        self.selected_project = project
        self.selected_version = version
        if not self.diagnostics.is_empty:
            logger.warning("Changelog %s diagnostics: %s", version, self.diagnostics.to_dict())
        self.rebuild()
        return True

    # ── Views ───────────────────────────────────────────────

    def tree(
        self,
        display_option: DisplayOption | str | None = None,
        filter_text: str | None = None,
        group_nodes: bool | None = None,
    ) -> list[TreeItemNode]:
        """Build a forest from the current records without changing session state."""
        option = DisplayOption.parse(display_option) if display_option else self.display_option
        text = self.filter_text if filter_text is None else filter_text
        group = self.group_nodes if group_nodes is None else group_nodes
        if option is DisplayOption.GRAPH:
            return []
        records = filter_records(self.tree_data, text).records
        return build_tree(records, self.root, option, group_nodes=group)

    def rebuild(self) -> list[TreeItemNode]:
        if self.display_option is DisplayOption.GRAPH:
            self._publish([])
            return self._data

        result = filter_records(self.tree_data, self.filter_text)
        self.filter_diagnostics = result.diagnostics
        forest = build_tree(result.records, self.root, self.display_option, group_nodes=self.group_nodes)
        logger.debug(
            "Rebuilt tree: %d root node(s), %d node(s)",
            len(forest), sum(1 for _ in walk_forest(forest)),
        )
        self._publish(forest)
        return forest

    def set_display_option(self, option: DisplayOption | str) -> list[TreeItemNode]:
        self.display_option = DisplayOption.parse(option)
        return self.rebuild()

    def filter(self, text: str | None) -> list[TreeItemNode]:
        self.filter_text = text or ""
        return self.rebuild()

    def graph(self) -> Graph:
        return build_graph(self.tree_data, self.selected_project or "", root=self.root)

    def reset(self) -> None:
        self.selected_project = None
        self.selected_version = None
        self.changelog_ids = []
        self.filter_text = ""
        self.display_option = self.config.display_option
        self.tree_data = []
        self.diagnostics = Diagnostics()
        self.filter_diagnostics = Diagnostics()
        self.rebuild()
