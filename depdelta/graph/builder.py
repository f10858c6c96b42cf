"""Graph builder: decodes record codes into a shared, deduplicated node graph."""

from __future__ import annotations

import logging
from typing import Iterable

from depdelta.models import FilterType, Record
from depdelta.graph.models import (
    ADDED_COLOR,
    DELETED_COLOR,
    DEPENDENCY_EDGE_WIDTH,
    Graph,
    GraphEdge,
    GraphItem,
    IdCounter,
)
from depdelta.tree import codec

logger = logging.getLogger(__name__)


def _tooltip(record: Record) -> str:
    label = record.label.value if record.label else ""
    path = record.path or record.code
    return f"{label}: {path}" if label else path


class GraphBuilder:
    """Build a changelog graph from flat records.

    Every distinct decoded path prefix maps to exactly one ``GraphItem``;
    records that share an ancestor share that ancestor's node.
    """

    def __init__(self, root: str = "root"):
        self.root = root

    def build(
        self,
        records: Iterable[Record],
        project_name: str,
        counter: IdCounter | None = None,
    ) -> Graph:
        counter = counter or IdCounter()
        project = GraphItem(
            id=counter.next(),
            name=project_name,
            code=self.root,
            tooltip=f"Project: {project_name}",
            type=FilterType.PROJECT,
        )
        graph = Graph(root=project)
        graph.by_id[project.id] = project

        count = 0
        structural: set[int] = set()
        for record in records:
            self._add_record(graph, record, counter, structural)
            count += 1

        # One connected root: hang top-level packages off the project.
        # Dependency-only targets stay detached even when their key is one segment.
        for item in list(graph.items.values()):
            if item.id in structural and item.parent is None and codec.depth(item.code) == 1:
                item.parent = project
                project.children.append(item)

        self._mark_displayed(graph)
        self._build_edges(graph)

        logger.info(
            "Graph for %s: %d record(s), %d node(s), %d displayed, %d edge(s)",
            project_name, count, len(graph.by_id), len(graph.displayed_ids), len(graph.edges),
        )
        if not graph.diagnostics.is_empty:
            logger.warning("Graph diagnostics: %s", graph.diagnostics.to_dict())
        return graph

    # ── Decoding ────────────────────────────────────────────

    def _add_record(
        self,
        graph: Graph,
        record: Record,
        counter: IdCounter,
        structural: set[int],
    ) -> None:
        if not codec.is_well_formed(record.code):
            graph.diagnostics.malformed_codes.append(record.code)
            return

        parts = codec.segments(record.code)
        if parts and parts[0] == self.root:
            parts = parts[1:]

        parent: GraphItem | None = None
        prefix: list[str] = []
        for i, segment in enumerate(parts):
            if segment == codec.METHODS:
                continue
            if segment in (codec.ADDED, codec.DELETED):
                target = parts[i + 1:]
                if not target:
                    return  # grouping record
                if parent is None:
                    graph.diagnostics.malformed_codes.append(record.code)
                    return
                self._attach_dependency(graph, parent, segment, target, record, counter)
                return

            prefix.append(segment)
            item = self._get_or_create(graph, codec.join(*prefix), segment, counter)
            structural.add(item.id)
            if parent is not None and item.parent is None and item is not parent:
                item.parent = parent
                parent.children.append(item)
            parent = item

        if parent is None or codec.is_synthetic(record.code):
            return
        if record.filter_type is not None:
            parent.type = record.filter_type
        if record.text:
            parent.name = record.text
        parent.tooltip = _tooltip(record)

    def _get_or_create(self, graph: Graph, key: str, name: str, counter: IdCounter) -> GraphItem:
        item = graph.items.get(key)
        if item is None:
            item = GraphItem(id=counter.next(), name=name, code=key, tooltip=key)
            graph.items[key] = item
            graph.by_id[item.id] = item
        return item

    def _attach_dependency(
        self,
        graph: Graph,
        parent: GraphItem,
        status: str,
        target: list[str],
        record: Record,
        counter: IdCounter,
    ) -> None:
        key = record.path or codec.join(*target)
        name = record.text or target[-1]
        dependency = self._get_or_create(graph, key, name, counter)
        dependency.is_dependency = True
        # The same target is reached from many referrers; first typing wins.
        if dependency.type is None:
            dependency.type = record.filter_type or FilterType.DEPENDENCY
            dependency.tooltip = _tooltip(record)

        bucket = parent.added_dependency if status == codec.ADDED else parent.deleted_dependency
        if dependency not in bucket:
            bucket.append(dependency)

    # ── Rendering ───────────────────────────────────────────

    def _mark_displayed(self, graph: Graph) -> None:
        memo: dict[int, bool] = {}

        def visit(item: GraphItem) -> bool:
            if item.id in memo:
                return memo[item.id]
            memo[item.id] = False
            shown = item.is_changed
            for child in item.children:
                shown = visit(child) or shown
            memo[item.id] = shown
            return shown

        for item in graph.by_id.values():
            if visit(item):
                graph.displayed_ids.add(item.id)
        graph.displayed_ids.add(graph.root.id)

    def _build_edges(self, graph: Graph) -> None:
        for item in sorted(graph.by_id.values(), key=lambda i: i.id):
            # Hidden referrers emit neither hierarchy nor dependency edges.
            if item.id not in graph.displayed_ids:
                continue
            for child in item.children:
                if child.id in graph.displayed_ids:
                    graph.edges.append(GraphEdge(source=child.id, target=item.id))
            for dependency in item.added_dependency:
                graph.edges.append(GraphEdge(
                    source=item.id, target=dependency.id,
                    label=codec.ADDED, color=ADDED_COLOR, width=DEPENDENCY_EDGE_WIDTH,
                ))
            for dependency in item.deleted_dependency:
                graph.edges.append(GraphEdge(
                    source=item.id, target=dependency.id,
                    label=codec.DELETED, color=DELETED_COLOR, width=DEPENDENCY_EDGE_WIDTH,
                ))


def build_graph(
    records: Iterable[Record],
    project_name: str,
    *,
    root: str = "root",
    counter: IdCounter | None = None,
) -> Graph:
    return GraphBuilder(root=root).build(records, project_name, counter=counter)
