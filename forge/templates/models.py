"""Read-only template records.

A template is static seed data for a new blueprint.  Core edges index into
``nodes``; ghost edges index into the combined sequence
``[*nodes, *ghost_nodes]``, so ghost node ``g`` has combined index
``len(nodes) + g``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from forge.blueprint.models import Position
from forge.exceptions import TemplateError


@dataclass(frozen=True)
class TemplateNode:
    type: str
    position: Position
    config: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TemplateEdge:
    source: int
    target: int


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    category: str
    nodes: tuple[TemplateNode, ...]
    edges: tuple[TemplateEdge, ...]
    ghost_nodes: tuple[TemplateNode, ...] = ()
    ghost_edges: tuple[TemplateEdge, ...] = ()
    tags: tuple[str, ...] = ()
    explainer: str = ""

    def __post_init__(self) -> None:
        for name in ("nodes", "edges", "ghost_nodes", "ghost_edges", "tags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        core = len(self.nodes)
        combined = core + len(self.ghost_nodes)
        for kind, edges, limit in (
            ("edge", self.edges, core),
            ("ghost edge", self.ghost_edges, combined),
        ):
            for i, edge in enumerate(edges):
                for end in (edge.source, edge.target):
                    if not 0 <= end < limit:
                        raise TemplateError(
                            f"Template {self.id!r}: {kind} {i} references index {end}, "
                            f"expected 0..{limit - 1}"
                        )

    @property
    def combined_nodes(self) -> tuple[TemplateNode, ...]:
        return self.nodes + self.ghost_nodes

    def to_dict(self) -> dict[str, Any]:
        """Render the template in the camelCase shape served over HTTP."""

        def _node(n: TemplateNode) -> dict[str, Any]:
            return {"type": n.type, "position": n.position.to_dict(), "config": dict(n.config)}

        def _edge(e: TemplateEdge) -> dict[str, int]:
            return {"source": e.source, "target": e.target}

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "explainer": self.explainer,
            "nodes": [_node(n) for n in self.nodes],
            "edges": [_edge(e) for e in self.edges],
            "ghostNodes": [_node(n) for n in self.ghost_nodes],
            "ghostEdges": [_edge(e) for e in self.ghost_edges],
        }
