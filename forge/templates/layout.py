"""Longest-path tiering and left-to-right layout.

Each node's tier is its longest-path depth from any root::

    tier(n) = 0                              if n has no predecessors
    tier(n) = 1 + max(tier(p) for p in preds) otherwise

Tiers map to columns (``x = tier * COLUMN_SPACING``) and the k-th node of a
tier, in declaration order, gets row ``y = y_offset + k * ROW_SPACING``.
Ghost nodes sit at least one column past the last core tier and are
row-numbered among ghosts only.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence, Union

from forge.blueprint.models import Position
from forge.exceptions import CyclicGraphError, TemplateError
from forge.templates.models import Template, TemplateEdge, TemplateNode

if TYPE_CHECKING:
    from forge.blueprint.session import BlueprintSession

logger = logging.getLogger(__name__)

NODE_WIDTH = 200
NODE_HEIGHT = 90
COLUMN_SPACING = NODE_WIDTH + 100
ROW_SPACING = NODE_HEIGHT + 60

EdgeLike = Union[TemplateEdge, Sequence[int]]


@dataclass
class Layout:
    """Tier and coordinate assignment for a core graph plus ghost overlay.

    Ghost mappings are keyed by ghost index (``0..ghost_count-1``), not by
    combined index.
    """

    tiers: dict[int, int]
    positions: dict[int, Position]
    ghost_tiers: dict[int, int] = field(default_factory=dict)
    ghost_positions: dict[int, Position] = field(default_factory=dict)

    def combined_tiers(self) -> dict[int, int]:
        """Tiers keyed by index into ``[*nodes, *ghost_nodes]``."""
        offset = len(self.tiers)
        combined = dict(self.tiers)
        combined.update({offset + g: t for g, t in self.ghost_tiers.items()})
        return combined


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _pairs(edges: Iterable[EdgeLike]) -> list[tuple[int, int]]:
    pairs = []
    for edge in edges:
        if isinstance(edge, TemplateEdge):
            pairs.append((edge.source, edge.target))
        else:
            source, target = edge
            pairs.append((source, target))
    return pairs


def _topological_order(count: int, pairs: list[tuple[int, int]]) -> tuple[list[int], list[list[int]]]:
    """Kahn's algorithm seeded in declaration order.

    Returns the order and the predecessor lists.

    Raises:
        TemplateError: An edge references an index outside ``[0, count)``.
        CyclicGraphError: Some nodes could not be ordered.
    """
    for source, target in pairs:
        for end in (source, target):
            if not 0 <= end < count:
                raise TemplateError(f"Edge {source}->{target} references index {end}, expected 0..{count - 1}")

    successors: list[list[int]] = [[] for _ in range(count)]
    predecessors: list[list[int]] = [[] for _ in range(count)]
    in_degree = [0] * count
    for source, target in pairs:
        successors[source].append(target)
        predecessors[target].append(source)
        in_degree[target] += 1

    queue = deque(i for i in range(count) if in_degree[i] == 0)
    order: list[int] = []
    while queue:
        current = queue.popleft()
        order.append(current)
        for nxt in successors[current]:
            in_degree[nxt] -= 1
            if in_degree[nxt] == 0:
                queue.append(nxt)

    if len(order) < count:
        stuck = [i for i in range(count) if in_degree[i] > 0]
        logger.warning("Cycle detected while tiering %d nodes: %s", count, stuck)
        raise CyclicGraphError(stuck)
    return order, predecessors


def _place(indices: Iterable[int], tiers: Mapping[int, int], y_offset: float) -> dict[int, Position]:
    rows: dict[int, int] = defaultdict(int)
    positions: dict[int, Position] = {}
    for index in indices:
        tier = tiers[index]
        positions[index] = Position(x=tier * COLUMN_SPACING, y=y_offset + rows[tier] * ROW_SPACING)
        rows[tier] += 1
    return positions


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_tiers(nodes: Union[int, Sequence[object]], edges: Iterable[EdgeLike]) -> dict[int, int]:
    """Map each node index to its longest-path depth from any root.

    Args:
        nodes: The node sequence, or just its length.  Only order matters.
        edges: ``TemplateEdge`` records or ``(source, target)`` index pairs.

    Raises:
        CyclicGraphError: The graph has a cycle.  No partial mapping is returned.
        TemplateError: An edge index is out of range.
    """
    count = nodes if isinstance(nodes, int) else len(nodes)
    order, predecessors = _topological_order(count, _pairs(edges))
    tiers: dict[int, int] = {}
    for index in order:
        tiers[index] = max((tiers[p] + 1 for p in predecessors[index]), default=0)
    return {i: tiers[i] for i in range(count)}


def layout_graph(
    node_count: int,
    edges: Iterable[EdgeLike],
    ghost_count: int = 0,
    ghost_edges: Iterable[EdgeLike] = (),
    y_offset: float = 0,
) -> Layout:
    """Compute tiers and coordinates for a core graph and its ghost overlay.

    Ghost edges index into the combined ``[*core, *ghosts]`` sequence.  A
    ghost's tier is the larger of ``max core tier + 1`` and one past its
    deepest predecessor in the combined graph.
    """
    core_pairs = _pairs(edges)
    tiers = compute_tiers(node_count, core_pairs)
    layout = Layout(tiers=tiers, positions=_place(range(node_count), tiers, y_offset))
    if not ghost_count:
        return layout

    combined = node_count + ghost_count
    order, predecessors = _topological_order(combined, core_pairs + _pairs(ghost_edges))
    ghost_floor = max(tiers.values(), default=-1) + 1
    combined_tiers = dict(tiers)
    for index in order:
        if index >= node_count:
            combined_tiers[index] = max(
                [ghost_floor] + [combined_tiers[p] + 1 for p in predecessors[index]]
            )

    ghost_indices = range(node_count, combined)
    placed = _place(ghost_indices, combined_tiers, y_offset)
    layout.ghost_tiers = {i - node_count: combined_tiers[i] for i in ghost_indices}
    layout.ghost_positions = {i - node_count: placed[i] for i in ghost_indices}
    return layout


def check_left_to_right(tiers: Mapping[int, int], edges: Iterable[EdgeLike]) -> list[tuple[int, int]]:
    """Return every edge whose source tier is not strictly left of its target."""
    return [(s, t) for s, t in _pairs(edges) if not tiers[s] < tiers[t]]


def template_layout(template: Template, y_offset: float = 0) -> Layout:
    """Apply the tiering rule to a template's core and ghost graphs."""
    return layout_graph(
        len(template.nodes),
        template.edges,
        ghost_count=len(template.ghost_nodes),
        ghost_edges=template.ghost_edges,
        y_offset=y_offset,
    )


BlockSpec = Union[str, tuple[str, Mapping[str, object]]]


def build_template(
    id: str,
    name: str,
    description: str,
    category: str,
    nodes: Sequence[BlockSpec],
    edges: Sequence[tuple[int, int]],
    ghost_nodes: Sequence[BlockSpec] = (),
    ghost_edges: Sequence[tuple[int, int]] = (),
    tags: Sequence[str] = (),
    explainer: str = "",
    y_offset: float = 0,
) -> Template:
    """Build a :class:`Template` whose coordinates come from :func:`layout_graph`.

    Blocks are given as a type string or a ``(type, config)`` pair.
    """
    layout = layout_graph(len(nodes), edges, len(ghost_nodes), ghost_edges, y_offset)

    def _node(spec: BlockSpec, position: Position) -> TemplateNode:
        if isinstance(spec, str):
            return TemplateNode(type=spec, position=position)
        block_type, config = spec
        return TemplateNode(type=block_type, position=position, config=dict(config))

    return Template(
        id=id,
        name=name,
        description=description,
        category=category,
        nodes=tuple(_node(s, layout.positions[i]) for i, s in enumerate(nodes)),
        edges=tuple(TemplateEdge(s, t) for s, t in edges),
        ghost_nodes=tuple(_node(s, layout.ghost_positions[i]) for i, s in enumerate(ghost_nodes)),
        ghost_edges=tuple(TemplateEdge(s, t) for s, t in ghost_edges),
        tags=tuple(tags),
        explainer=explainer,
    )


def relayout_blueprint(session: BlueprintSession, y_offset: float = 0) -> Layout:
    """Re-flow the session's live graph and ghost overlay by the tiering rule.

    Nodes are taken in declaration order.  The whole move is one undo step.

    Raises:
        CyclicGraphError: The live graph has a cycle.  Nothing is moved.
    """
    nodes = session.blueprint.nodes
    ghosts = session.ghost_nodes
    index = {n.id: i for i, n in enumerate(nodes)}
    index.update({g.id: len(nodes) + i for i, g in enumerate(ghosts)})

    edges = [(index[e.source], index[e.target]) for e in session.blueprint.edges]
    ghost_edges = [
        (index[e.source], index[e.target])
        for e in session.ghost_edges
        if e.source in index and e.target in index
    ]
    layout = layout_graph(len(nodes), edges, len(ghosts), ghost_edges, y_offset)

    with session.transaction():
        for i, node in enumerate(list(nodes)):
            if node.position != layout.positions[i]:
                session.update_node(node.id, position=layout.positions[i])
    for i, ghost in enumerate(list(ghosts)):
        session.update_ghost_node(ghost.id, position=layout.ghost_positions[i])

    logger.info("Re-laid out %d nodes and %d ghosts", len(nodes), len(ghosts))
    return layout


def get_tier_columns(tiers: Mapping[int, int]) -> list[list[int]]:
    """Group node indices by tier, preserving declaration order within a tier."""
    if not tiers:
        return []
    columns: list[list[int]] = [[] for _ in range(max(tiers.values()) + 1)]
    for node_index in sorted(tiers):
        columns[tiers[node_index]].append(node_index)
    return columns

