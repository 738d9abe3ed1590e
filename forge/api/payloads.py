"""JSON payload builders shared by the routers."""

from __future__ import annotations

from typing import Any

from forge.blueprint.models import Edge, GhostNode, Node
from forge.blueprint.serialization import blueprint_to_dict
from forge.blueprint.session import BlueprintSession
from forge.templates.layout import Layout


def node_dict(node: Node) -> dict[str, Any]:
    data = {
        "id": node.id,
        "type": node.type,
        "position": node.position.to_dict(),
        "config": node.config,
    }
    if isinstance(node, GhostNode):
        data["data"] = node.data
    return data


def edge_dict(edge: Edge) -> dict[str, Any]:
    return {"id": edge.id, "source": edge.source, "target": edge.target, "type": edge.type}


def ghosts_dict(session: BlueprintSession) -> dict[str, Any]:
    return {
        "ghostNodes": [node_dict(g) for g in session.ghost_nodes],
        "ghostEdges": [edge_dict(e) for e in session.ghost_edges],
    }


def state_dict(session: BlueprintSession) -> dict[str, Any]:
    """Blueprint document plus the session state a UI needs to redraw."""
    return {
        "blueprint": blueprint_to_dict(session.blueprint),
        "selectedNodeId": session.selected_node_id,
        "canUndo": session.can_undo,
        "canRedo": session.can_redo,
    }


def layout_dict(layout: Layout) -> dict[str, Any]:
    return {
        "tiers": layout.tiers,
        "positions": {i: p.to_dict() for i, p in layout.positions.items()},
        "ghostTiers": layout.ghost_tiers,
        "ghostPositions": {i: p.to_dict() for i, p in layout.ghost_positions.items()},
    }
