"""Visual clustering of graph nodes with their descendants.

Membership is computed from ``GraphItem`` ancestry alone; the widget only
receives ``cluster`` / ``open_cluster`` commands. Each node toggles between
``expanded`` and ``clustered``; after ``cluster_roots()`` every top-level
entity starts clustered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol, Union

from depdelta.graph.models import Graph

logger = logging.getLogger(__name__)

Member = Union[int, str]  # node id or nested cluster id

CLUSTER_PREFIX = "cluster:"
EXPANDED = "expanded"
CLUSTERED = "clustered"


def cluster_id_for(node_id: int) -> str:
    return f"{CLUSTER_PREFIX}{node_id}"


def is_cluster_id(value: Member) -> bool:
    return isinstance(value, str) and value.startswith(CLUSTER_PREFIX)


def cluster_members(graph: Graph, node_id: int, heads: Mapping[int, str]) -> list[Member]:
    """Immediate members of the cluster headed by *node_id*.

    The node itself, then each displayed child, or the cluster that child
    already heads.
    """
    members: list[Member] = [node_id]
    for child in graph.displayed_children(node_id):
        members.append(heads.get(child.id, child.id))
    return members


class GraphWidget(Protocol):
    def cluster(self, cluster_id: str, member_ids: list[Member], label: str) -> None: ...

    def open_cluster(self, cluster_id: str) -> None: ...


class CommandRecorder:
    """Widget stand-in that records commands for a browser-side renderer."""

    def __init__(self):
        self.commands: list[dict] = []

    def cluster(self, cluster_id: str, member_ids: list[Member], label: str) -> None:
        self.commands.append({
            "action": "cluster",
            "clusterId": cluster_id,
            "members": list(member_ids),
            "label": label,
        })

    def open_cluster(self, cluster_id: str) -> None:
        self.commands.append({"action": "open", "clusterId": cluster_id})

    def drain(self) -> list[dict]:
        commands, self.commands = self.commands, []
        return commands


@dataclass
class Cluster:
    id: str
    node_id: int
    label: str
    members: list[Member] = field(default_factory=list)


class ClusterController:
    def __init__(self, graph: Graph, widget: GraphWidget | None = None):
        self.graph = graph
        self.widget = widget if widget is not None else CommandRecorder()
        self.clusters: dict[str, Cluster] = {}
        self._heads: dict[int, str] = {}  # node id -> cluster it heads
        self._container: dict[Member, str] = {}  # member -> enclosing cluster

    # ── Queries ─────────────────────────────────────────────

    def is_visible(self, member: Member) -> bool:
        if is_cluster_id(member):
            return member in self.clusters and member not in self._container
        return member not in self._container

    def state_of(self, node_id: int) -> str:
        return CLUSTERED if node_id in self._container else EXPANDED

    def contains(self, cluster_id: str, node_id: int) -> bool:
        """Transitive membership through nested clusters."""
        cluster = self.clusters.get(cluster_id)
        if cluster is None:
            return False
        for member in cluster.members:
            if member == node_id:
                return True
            if is_cluster_id(member) and self.contains(member, node_id):
                return True
        return False

    def visible_elements(self) -> list[Member]:
        nodes: list[Member] = [i for i in sorted(self.graph.displayed_ids) if self.is_visible(i)]
        clusters: list[Member] = [c for c in self.clusters if self.is_visible(c)]
        return nodes + clusters

    # ── Commands ────────────────────────────────────────────

    def cluster_with_children(self, node_id: int) -> Cluster | None:
        """Cluster *node_id* with all its descendants, deepest first.

        Nodes without displayed children are left as they are.
        """
        if node_id in self._heads:
            return self.clusters[self._heads[node_id]]
        item = self.graph.get(node_id)
        if item is None or not self.graph.displayed_children(node_id):
            return None

        for child in self.graph.displayed_children(node_id):
            self.cluster_with_children(child.id)

        cluster = Cluster(
            id=cluster_id_for(node_id),
            node_id=node_id,
            label=item.name,
            members=cluster_members(self.graph, node_id, self._heads),
        )
        self.clusters[cluster.id] = cluster
        self._heads[node_id] = cluster.id
        for member in cluster.members:
            self._container[member] = cluster.id

        self.widget.cluster(cluster.id, cluster.members, cluster.label)
        logger.debug("Clustered %s with %d member(s)", cluster.id, len(cluster.members))
        return cluster

    def open_cluster(self, cluster_id: str) -> list[str]:
        """Open *cluster_id*; small clusters also open their nested clusters.

        Returns the ids of every cluster opened.
        """
        cluster = self.clusters.pop(cluster_id, None)
        if cluster is None:
            raise KeyError(cluster_id)
        self._heads.pop(cluster.node_id, None)
        for member in cluster.members:
            self._container.pop(member, None)
        self.widget.open_cluster(cluster_id)

        opened = [cluster_id]
        if len(cluster.members) > 2:
            return opened
        for member in cluster.members:
            if is_cluster_id(member) and member in self.clusters:
                opened.extend(self.open_cluster(member))
        return opened

    def cluster_roots(self) -> list[Cluster]:
        """Initial state: one cluster per top-level entity."""
        created: list[Cluster] = []
        for child in self.graph.displayed_children(self.graph.root.id):
            cluster = self.cluster_with_children(child.id)
            if cluster is not None:
                created.append(cluster)
        return created

    def toggle(self, target: Member) -> list[str]:
        """Double-click handler: open a cluster, or cluster an expanded node.

        Returns the affected cluster ids. Hidden targets are rejected.
        """
        if not self.is_visible(target):
            raise ValueError(f"{target!r} is not visible")
        if is_cluster_id(target):
            return self.open_cluster(target)
        cluster = self.cluster_with_children(int(target))
        return [cluster.id] if cluster else []
