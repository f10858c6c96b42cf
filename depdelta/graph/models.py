"""Data models for the changelog graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from depdelta.models import Diagnostics, FilterType

# Node colors keyed by type; anything untyped falls back to OTHER_COLOR.
NODE_COLORS: dict[FilterType, str] = {
    FilterType.PROJECT: "#f4a261",
    FilterType.PACKAGE: "#2a9d8f",
    FilterType.CLASS: "#e9c46a",
    FilterType.METHOD: "#8ab17d",
    FilterType.DEPENDENCY: "#a8dadc",
}
OTHER_COLOR = "#cccccc"

ADDED_COLOR = "#2e7d32"
DELETED_COLOR = "#c62828"
DEPENDENCY_EDGE_WIDTH = 2


class IdCounter:
    """Dense, monotonic node ids for one graph construction."""

    def __init__(self, start: int = 0):
        self._next = start

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value

    @property
    def assigned(self) -> int:
        return self._next


@dataclass(eq=False)
class GraphItem:
    id: int
    name: str
    code: str
    tooltip: str = ""
    children: list[GraphItem] = field(default_factory=list)
    added_dependency: list[GraphItem] = field(default_factory=list)
    deleted_dependency: list[GraphItem] = field(default_factory=list)
    type: FilterType | None = None
    is_dependency: bool = False
    parent: GraphItem | None = field(default=None, repr=False)

    @property
    def is_changed(self) -> bool:
        """Displayed on its own account: a dependency target, or more than one
        added or more than one deleted dependency. Ancestors of a changed node
        are displayed too; see ``GraphBuilder._mark_displayed``.
        """
        return (
            self.is_dependency
            or len(self.added_dependency) > 1
            or len(self.deleted_dependency) > 1
        )

    @property
    def color(self) -> str:
        return NODE_COLORS.get(self.type, OTHER_COLOR) if self.type else OTHER_COLOR


@dataclass
class GraphEdge:
    source: int
    target: int
    label: str | None = None
    color: str | None = None
    width: int | None = None

    def to_dict(self) -> dict:
        d: dict = {"from": self.source, "to": self.target, "arrows": "to"}
        if self.label is not None:
            d["label"] = self.label
        if self.color is not None:
            d["color"] = self.color
        if self.width is not None:
            d["width"] = self.width
        return d


@dataclass
class Graph:
    root: GraphItem
    items: dict[str, GraphItem] = field(default_factory=dict)  # decoded path -> item
    by_id: dict[int, GraphItem] = field(default_factory=dict)
    displayed_ids: set[int] = field(default_factory=set)
    edges: list[GraphEdge] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def get(self, node_id: int) -> GraphItem | None:
        return self.by_id.get(node_id)

    def is_displayed(self, node_id: int) -> bool:
        return node_id in self.displayed_ids

    def displayed_children(self, node_id: int) -> list[GraphItem]:
        item = self.by_id.get(node_id)
        if item is None:
            return []
        return [c for c in item.children if c.id in self.displayed_ids]

    def nodes(self) -> list[dict]:
        return [
            {"id": item.id, "label": item.name, "title": item.tooltip, "color": item.color}
            for item in sorted(self.by_id.values(), key=lambda i: i.id)
            if item.id in self.displayed_ids
        ]

    def to_dict(self) -> dict:
        return {
            "nodes": self.nodes(),
            "edges": [e.to_dict() for e in self.edges],
        }
