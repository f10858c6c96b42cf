"""Graph API: node and edge set, initial clustering, cluster toggling."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from depdelta.graph.cluster import is_cluster_id
from depdelta.web.state import GraphView, state

router = APIRouter(prefix="/api/graph")


def _get_or_build_graph() -> GraphView:
    """Get cached graph or build one."""
    if state.session is None:
        raise HTTPException(503, "No changelog source configured")
    cached = state.get_graph()
    if cached:
        return cached
    if not state.session.tree_data:
        raise HTTPException(400, "No changelog loaded")
    return state.build_graph()


def _parse_target(target: str) -> int | str:
    if is_cluster_id(target):
        return target
    try:
        return int(target)
    except ValueError:
        raise HTTPException(400, f"Not a node or cluster id: {target}")


@router.get("")
async def get_graph():
    view = _get_or_build_graph()
    data = view.graph.to_dict()
    data["commands"] = view.recorder.drain()
    data["visible"] = view.controller.visible_elements()
    data["diagnostics"] = view.graph.diagnostics.to_dict()
    return data


@router.post("/rebuild")
async def rebuild_graph():
    if state.session is None:
        raise HTTPException(503, "No changelog source configured")
    state.clear_graph()
    return await get_graph()


@router.get("/node/{node_id}")
async def get_node(node_id: int):
    view = _get_or_build_graph()
    item = view.graph.get(node_id)
    if item is None or not view.graph.is_displayed(node_id):
        raise HTTPException(404, "Node not found")
    return {
        "id": item.id,
        "name": item.name,
        "code": item.code,
        "title": item.tooltip,
        "type": item.type.value if item.type else None,
        "is_dependency": item.is_dependency,
        "children": [c.id for c in view.graph.displayed_children(node_id)],
        "added": [d.id for d in item.added_dependency],
        "deleted": [d.id for d in item.deleted_dependency],
        "state": view.controller.state_of(node_id),
    }


@router.post("/toggle/{target}")
async def toggle(target: str):
    """Double-click on a node clusters it; on a cluster, opens it."""
    view = _get_or_build_graph()
    parsed = _parse_target(target)
    try:
        affected = view.controller.toggle(parsed)
    except ValueError as e:
        raise HTTPException(409, str(e))
    return {
        "target": target,
        "affected": affected,
        "commands": view.recorder.drain(),
        "visible": view.controller.visible_elements(),
    }
