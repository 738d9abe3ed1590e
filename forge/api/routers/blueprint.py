"""Blueprint editing REST endpoints.

Routes
------
GET    /blueprint                          Current blueprint document
POST   /blueprint/reset                    Replace with a fresh default blueprint
POST   /blueprint/import                   Replace with a posted JSON document
GET    /blueprint/export                   Deterministic JSON export (raw text)
POST   /blueprint/validate                 Validate a posted document without importing
POST   /blueprint/nodes                    Add a node
PATCH  /blueprint/nodes/{id}               Replace type / position / config
PATCH  /blueprint/nodes/{id}/config        Shallow-merge into config
DELETE /blueprint/nodes/{id}               Remove a node and its edges
POST   /blueprint/edges                    Connect two nodes
DELETE /blueprint/edges/{id}               Remove an edge
PUT    /blueprint/selection                Select a node (or clear)
PATCH  /blueprint/config                   Merge project / network settings
POST   /blueprint/undo                     Step back in history
POST   /blueprint/redo                     Step forward in history
POST   /blueprint/relayout                 Re-flow positions by tier
GET    /blueprint/ghosts                   Ghost overlay
POST   /blueprint/ghosts/{id}/activate     Promote a ghost into the graph
DELETE /blueprint/ghosts/{id}              Dismiss a ghost
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field, FiniteFloat

from forge.api.payloads import edge_dict, ghosts_dict, layout_dict, node_dict, state_dict
from forge.blueprint.serialization import blueprint_to_dict, validate_document
from forge.blueprint.session import BlueprintSession
from forge.exceptions import CyclicGraphError, MalformedDocument
from forge.templates.layout import relayout_blueprint

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class PositionBody(BaseModel):
    x: FiniteFloat
    y: FiniteFloat


class NodeCreate(BaseModel):
    type: str = Field(min_length=1)
    position: PositionBody
    config: dict[str, Any] = Field(default_factory=dict)


class NodeUpdate(BaseModel):
    type: Optional[str] = Field(default=None, min_length=1)
    position: Optional[PositionBody] = None
    config: Optional[dict[str, Any]] = None


class EdgeCreate(BaseModel):
    source: str
    target: str


class SelectionBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    node_id: Optional[str] = Field(default=None, alias="nodeId")


class ProjectPatch(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    version: Optional[str] = None
    license: Optional[str] = None
    keywords: Optional[list[str]] = None


class NetworkPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chain_id: Optional[int] = Field(default=None, alias="chainId", gt=0)
    name: Optional[str] = None
    rpc_url: Optional[str] = Field(default=None, alias="rpcUrl")
    explorer_url: Optional[str] = Field(default=None, alias="explorerUrl")
    is_testnet: Optional[bool] = Field(default=None, alias="isTestnet")


class ConfigPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project: Optional[ProjectPatch] = None
    network: Optional[NetworkPatch] = None
    generate_docs: Optional[bool] = Field(default=None, alias="generateDocs")
    deploy_on_generate: Optional[bool] = Field(default=None, alias="deployOnGenerate")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _session(request: Request) -> BlueprintSession:
    return request.app.state.session


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=dict[str, Any])
def get_blueprint_endpoint(request: Request) -> dict[str, Any]:
    """Return the current blueprint document."""
    return blueprint_to_dict(_session(request).blueprint)


@router.post("/reset", response_model=dict[str, Any])
def reset_blueprint_endpoint(request: Request) -> dict[str, Any]:
    """Discard the current graph and return a fresh default blueprint."""
    session = _session(request)
    session.reset()
    return state_dict(session)


@router.post("/import", response_model=dict[str, Any])
async def import_blueprint_endpoint(request: Request) -> dict[str, Any]:
    """Replace the blueprint with the posted JSON document.

    The prior blueprint is left untouched when the document is rejected.
    """
    session = _session(request)
    try:
        session.import_(await request.body())
    except MalformedDocument as exc:
        raise HTTPException(
            status_code=422, detail={"message": str(exc), "errors": exc.errors}
        ) from exc
    return state_dict(session)


@router.get("/export")
def export_blueprint_endpoint(request: Request) -> Response:
    """Return the deterministic JSON export as raw text."""
    return Response(content=_session(request).export(), media_type="application/json")


@router.post("/validate", response_model=dict[str, Any])
async def validate_blueprint_endpoint(request: Request) -> dict[str, Any]:
    """Validate a posted document without importing it."""
    return validate_document(await request.body()).to_dict()


# ---------------------------------------------------------------------------
# Node / edge endpoints
# ---------------------------------------------------------------------------

@router.post("/nodes", status_code=201, response_model=dict[str, Any])
def add_node_endpoint(body: NodeCreate, request: Request) -> dict[str, Any]:
    """Add a node with catalog defaults merged with ``config``."""
    node = _session(request).add_node(body.type, body.position.model_dump(), body.config)
    return node_dict(node)


@router.patch("/nodes/{node_id}", response_model=dict[str, Any])
def update_node_endpoint(node_id: str, body: NodeUpdate, request: Request) -> dict[str, Any]:
    """Replace any of ``type``, ``position`` and ``config`` on a node."""
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    node = _session(request).update_node(node_id, **updates)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found.")
    return node_dict(node)


@router.patch("/nodes/{node_id}/config", response_model=dict[str, Any])
def update_node_config_endpoint(
    node_id: str,
    body: dict[str, Any],
    request: Request,
) -> dict[str, Any]:
    """Shallow-merge the posted keys into a node's config."""
    node = _session(request).update_node_config(node_id, body)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found.")
    return node_dict(node)


@router.delete("/nodes/{node_id}", status_code=204)
def remove_node_endpoint(node_id: str, request: Request) -> Response:
    """Remove a node and every edge touching it.  Unknown ids are ignored."""
    _session(request).remove_node(node_id)
    return Response(status_code=204)


@router.post("/edges", status_code=201, response_model=dict[str, Any])
def add_edge_endpoint(body: EdgeCreate, request: Request) -> dict[str, Any]:
    """Connect two nodes; 409 for a self-loop, duplicate, or unknown endpoint."""
    edge = _session(request).add_edge(body.source, body.target)
    if edge is None:
        raise HTTPException(
            status_code=409,
            detail=f"Edge '{body.source}' -> '{body.target}' was rejected.",
        )
    return edge_dict(edge)


@router.delete("/edges/{edge_id}", status_code=204)
def remove_edge_endpoint(edge_id: str, request: Request) -> Response:
    _session(request).remove_edge(edge_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Session state endpoints
# ---------------------------------------------------------------------------

@router.put("/selection", response_model=dict[str, Any])
def select_node_endpoint(body: SelectionBody, request: Request) -> dict[str, Any]:
    """Select a node by id, or clear the selection with ``null``."""
    session = _session(request)
    session.select_node(body.node_id)
    selected = session.selected_node
    return {
        "selectedNodeId": session.selected_node_id,
        "node": node_dict(selected) if selected is not None else None,
    }


@router.patch("/config", response_model=dict[str, Any])
def update_config_endpoint(body: ConfigPatch, request: Request) -> dict[str, Any]:
    """Merge project / network settings and replace the generation flags.

    An explicit ``null`` is passed through, so clearing a required field
    such as ``project.name`` is a 422 rather than a silent no-op.
    """
    session = _session(request)
    try:
        session.update_config(
            project=body.project.model_dump(exclude_unset=True) if body.project else None,
            network=body.network.model_dump(exclude_unset=True) if body.network else None,
            generate_docs=body.generate_docs,
            deploy_on_generate=body.deploy_on_generate,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return blueprint_to_dict(session.blueprint)["config"]


@router.post("/undo", response_model=dict[str, Any])
def undo_endpoint(request: Request) -> dict[str, Any]:
    session = _session(request)
    return {"applied": session.undo(), **state_dict(session)}


@router.post("/redo", response_model=dict[str, Any])
def redo_endpoint(request: Request) -> dict[str, Any]:
    session = _session(request)
    return {"applied": session.redo(), **state_dict(session)}


@router.post("/relayout", response_model=dict[str, Any])
def relayout_endpoint(request: Request) -> dict[str, Any]:
    """Re-flow node positions by tier; 409 if the graph has a cycle."""
    try:
        layout = relayout_blueprint(_session(request))
    except CyclicGraphError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return layout_dict(layout)


# ---------------------------------------------------------------------------
# Ghost overlay endpoints
# ---------------------------------------------------------------------------

@router.get("/ghosts", response_model=dict[str, Any])
def list_ghosts_endpoint(request: Request) -> dict[str, Any]:
    return ghosts_dict(_session(request))


@router.post("/ghosts/{ghost_id}/activate", response_model=dict[str, Any])
def activate_ghost_endpoint(ghost_id: str, request: Request) -> dict[str, Any]:
    """Promote a ghost node (and any ghost edges now fully live) into the graph."""
    session = _session(request)
    node = session.activate_ghost_node(ghost_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Ghost node '{ghost_id}' not found.")
    return {"node": node_dict(node), **ghosts_dict(session)}


@router.delete("/ghosts/{ghost_id}", status_code=204)
def dismiss_ghost_endpoint(ghost_id: str, request: Request) -> Response:
    _session(request).dismiss_ghost_node(ghost_id)
    return Response(status_code=204)
