"""Utilities for rendering blueprint graphs in the CLI."""

from __future__ import annotations

from typing import Optional, Sequence

from forge.blueprint.models import Blueprint
from forge.exceptions import CyclicGraphError
from forge.templates.layout import compute_tiers, get_tier_columns

COLUMN_WIDTH = 26


def _cell(text: str, width: int) -> str:
    if len(text) > width - 1:
        text = text[: width - 2] + "…"
    return text.ljust(width)


def render_columns(
    columns: Sequence[Sequence[str]],
    width: int = COLUMN_WIDTH,
    ghost_columns: Optional[Sequence[Sequence[str]]] = None,
) -> str:
    """Render tier columns side by side, one tier per column.

    Ghost entries are shown in parentheses below the core rows of their tier.
    """
    ghost_columns = ghost_columns or []
    count = max(len(columns), len(ghost_columns))
    if count == 0:
        return "(empty graph)"

    cells: list[list[str]] = []
    for tier in range(count):
        core = list(columns[tier]) if tier < len(columns) else []
        ghosts = list(ghost_columns[tier]) if tier < len(ghost_columns) else []
        cells.append(core + [f"({g})" for g in ghosts])

    lines = ["".join(_cell(f"Tier {t}", width) for t in range(count)).rstrip()]
    lines.append("".join(_cell("-" * (width - 2), width) for _ in range(count)).rstrip())
    for row in range(max(len(c) for c in cells)):
        lines.append(
            "".join(_cell(c[row] if row < len(c) else "", width) for c in cells).rstrip()
        )
    return "\n".join(lines)


def render_blueprint(blueprint: Blueprint) -> str:
    """Render a blueprint's nodes as tier columns followed by its edge list.

    A cyclic graph cannot be tiered, so its nodes are listed flat instead.
    """
    index = {n.id: i for i, n in enumerate(blueprint.nodes)}
    labels = [f"{n.type} [{n.id[:8]}]" for n in blueprint.nodes]
    edges = [(index[e.source], index[e.target]) for e in blueprint.edges]

    try:
        tiers = compute_tiers(len(blueprint.nodes), edges)
    except CyclicGraphError as exc:
        lines = [f"⚠️  {exc}"]
        lines.extend(f"  {label}" for label in labels)
    else:
        columns = [[labels[i] for i in column] for column in get_tier_columns(tiers)]
        lines = [render_columns(columns)]

    if blueprint.edges:
        lines.append("")
        lines.append("Edges:")
        for edge in blueprint.edges:
            lines.append(f"  {labels[index[edge.source]]}  →  {labels[index[edge.target]]}")
    return "\n".join(lines)
