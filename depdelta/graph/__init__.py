"""Changelog graph: deduplicated node/edge construction and visual clustering."""

from __future__ import annotations

from depdelta.graph.builder import GraphBuilder, build_graph
from depdelta.graph.cluster import (
    Cluster,
    ClusterController,
    CommandRecorder,
    GraphWidget,
    cluster_id_for,
    cluster_members,
)
from depdelta.graph.models import Graph, GraphEdge, GraphItem, IdCounter

__all__ = [
    "GraphBuilder",
    "build_graph",
    "Cluster",
    "ClusterController",
    "CommandRecorder",
    "GraphWidget",
    "cluster_id_for",
    "cluster_members",
    "Graph",
    "GraphEdge",
    "GraphItem",
    "IdCounter",
]
