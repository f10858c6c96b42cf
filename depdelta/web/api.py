"""FastAPI routes for projects, changelog loading and the changelog tree."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from depdelta.models import DisplayOption
from depdelta.session import ChangelogSession
from depdelta.source import ChangelogNotFoundError
from depdelta.web.state import state

router = APIRouter(prefix="/api")


# --- Request models ---

class ChangelogRequest(BaseModel):
    project: str
    version: str


class DisplayRequest(BaseModel):
    option: str


# --- Helpers ---

def _session() -> ChangelogSession:
    if state.session is None:
        raise HTTPException(503, "No changelog source configured")
    return state.session


def _display_option(value: str | None) -> DisplayOption | None:
    if not value:
        return None
    try:
        option = DisplayOption.parse(value)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if option is DisplayOption.GRAPH:
        raise HTTPException(400, "Use /api/graph for the graph display option")
    return option


# --- Endpoints ---

@router.get("/projects")
async def list_projects():
    session = _session()
    projects = await session.load_projects()
    return {"projects": projects}


@router.get("/projects/{project}/versions")
async def list_versions(project: str):
    session = _session()
    try:
        versions = await session.select_project(project)
    except ChangelogNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"project": project, "versions": versions}


@router.post("/changelog")
async def load_changelog(req: ChangelogRequest):
    session = _session()
    try:
        applied = await session.load_changelog(req.project, req.version)
    except ChangelogNotFoundError as e:
        raise HTTPException(404, str(e))
    state.clear_graph()
    return {
        "project": req.project,
        "version": req.version,
        "applied": applied,
        "records": len(session.tree_data),
        "diagnostics": session.diagnostics.to_dict(),
    }


@router.delete("/changelog")
async def reset_changelog():
    session = _session()
    session.reset()
    state.clear_graph()
    return {"reset": True}


@router.get("/records")
async def list_records():
    session = _session()
    return {
        "project": session.selected_project,
        "version": session.selected_version,
        "records": [r.to_dict() for r in session.tree_data],
    }


@router.get("/tree")
async def get_tree(
    display: str | None = Query(None),
    filter_text: str | None = Query(None, alias="filter"),
    group_nodes: bool | None = Query(None),
):
    session = _session()
    option = _display_option(display)
    forest = session.tree(option, filter_text, group_nodes)
    return {
        "project": session.selected_project,
        "version": session.selected_version,
        "display": (option or session.display_option).value,
        "filter": session.filter_text if filter_text is None else filter_text,
        "tree": [node.to_dict() for node in forest],
    }


@router.get("/tree/node")
async def get_tree_node(code: str = Query(...)):
    """Look up a node of the current forest by code, e.g. to restore a selection."""
    session = _session()
    for top in session.data:
        node = top.find(code)
        if node is not None:
            return node.to_dict()
    raise HTTPException(404, f"No node with code {code!r} in the current tree")


@router.put("/display")
async def set_display(req: DisplayRequest):
    session = _session()
    try:
        forest = session.set_display_option(req.option)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {
        "display": session.display_option.value,
        "tree": [node.to_dict() for node in forest],
    }


@router.put("/filter")
async def set_filter(filter_text: str = Query("", alias="filter")):
    session = _session()
    forest = session.filter(filter_text)
    return {
        "filter": session.filter_text,
        "tree": [node.to_dict() for node in forest],
        "diagnostics": session.filter_diagnostics.to_dict(),
    }


@router.get("/diagnostics")
async def get_diagnostics():
    session = _session()
    return {
        "load": session.diagnostics.to_dict(),
        "filter": session.filter_diagnostics.to_dict(),
    }
