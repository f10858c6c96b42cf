"""In-memory state for the web UI: one changelog session per server."""

from __future__ import annotations

from dataclasses import dataclass, field

from depdelta.graph import ClusterController, CommandRecorder, Graph
from depdelta.models import ViewerConfig
from depdelta.session import ChangelogSession
from depdelta.source import ChangelogSource


@dataclass
class GraphView:
    graph: Graph
    controller: ClusterController
    recorder: CommandRecorder = field(default_factory=CommandRecorder)


class AppState:
    """Singleton in-memory state shared by all API routes."""

    def __init__(self):
        self.session: ChangelogSession | None = None
        self._graph: GraphView | None = None

    def configure(self, source: ChangelogSource | None, config: ViewerConfig) -> None:
        self.session = ChangelogSession(source, config) if source is not None else None
        self._graph = None

    # ── Graph cache ─────────────────────────────────────────

    def get_graph(self) -> GraphView | None:
        return self._graph

    def build_graph(self) -> GraphView:
        """Build the graph for the current records and apply initial clustering."""
        graph = self.session.graph()
        recorder = CommandRecorder()
        view = GraphView(graph=graph, controller=ClusterController(graph, recorder), recorder=recorder)
        view.controller.cluster_roots()
        self._graph = view
        return view

    def clear_graph(self) -> None:
        self._graph = None


# Module-level singleton, imported by every router
state = AppState()
