"""Dataclass models for a blueprint graph.

These are plain Python objects.  The session layer mutates them and the
serialization layer converts them to and from the JSON document format.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from forge.blueprint.identifiers import new_id, utc_now
from forge.config import settings

SCHEMA_VERSION = "1.0.0"

STATUS_DRAFT = "draft"

EDGE_DEPENDENCY = "dependency"
EDGE_TYPES = (EDGE_DEPENDENCY,)


# ---------------------------------------------------------------------------
# Graph primitives
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def __post_init__(self) -> None:
        for axis, value in (("x", self.x), ("y", self.y)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Position {axis} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"Position {axis} must be finite, got {value!r}")

    @classmethod
    def coerce(cls, value: PositionLike) -> Position:
        """Accept a Position, an ``{"x", "y"}`` mapping, or an ``(x, y)`` pair."""
        if isinstance(value, Position):
            return value
        if isinstance(value, Mapping):
            try:
                return cls(x=value["x"], y=value["y"])
            except KeyError as exc:
                raise ValueError(f"Position is missing {exc.args[0]!r}") from exc
        x, y = value
        return cls(x=x, y=y)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


PositionLike = Union[Position, Mapping[str, float], tuple[float, float]]


@dataclass
class Node:
    id: str
    type: str
    position: Position
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class GhostNode(Node):
    """A suggested node shown next to the live graph until it is activated.

    ``data`` carries overlay-only flags (e.g. ``isSuggestion``) that are
    stripped when the node is promoted.
    """

    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class Edge:
    id: str
    source: str
    target: str
    type: str = EDGE_DEPENDENCY


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def unique_keywords(keywords: Iterable[str]) -> list[str]:
    """Collapse duplicate keywords, keeping first-seen order."""
    seen: dict[str, None] = {}
    for keyword in keywords:
        seen.setdefault(keyword, None)
    return list(seen)


@dataclass
class ProjectConfig:
    name: str
    description: Optional[str] = None
    version: str = "0.1.0"
    license: str = "MIT"
    keywords: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.keywords = unique_keywords(self.keywords)


@dataclass
class NetworkConfig:
    chain_id: int
    name: str
    rpc_url: Optional[str] = None
    explorer_url: Optional[str] = None
    is_testnet: bool = False


PREDEFINED_NETWORKS: dict[str, dict[str, Any]] = {
    "arbitrum-one": {
        "chain_id": 42161,
        "name": "Arbitrum One",
        "rpc_url": "https://arb1.arbitrum.io/rpc",
        "explorer_url": "https://arbiscan.io",
        "is_testnet": False,
    },
    "arbitrum-sepolia": {
        "chain_id": 421614,
        "name": "Arbitrum Sepolia",
        "rpc_url": "https://sepolia-rollup.arbitrum.io/rpc",
        "explorer_url": "https://sepolia.arbiscan.io",
        "is_testnet": True,
    },
}


def network_preset(key: str) -> NetworkConfig:
    """Return a fresh :class:`NetworkConfig` for a predefined network key.

    Raises:
        ValueError: If ``key`` is not one of :data:`PREDEFINED_NETWORKS`.
    """
    try:
        return NetworkConfig(**PREDEFINED_NETWORKS[key])
    except KeyError as exc:
        known = ", ".join(sorted(PREDEFINED_NETWORKS))
        raise ValueError(f"Unknown network {key!r} (expected one of: {known})") from exc


@dataclass
class BlueprintConfig:
    project: ProjectConfig
    network: NetworkConfig
    generate_docs: bool = True
    deploy_on_generate: bool = False


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------

@dataclass
class Blueprint:
    id: str
    version: str
    nodes: list[Node]
    edges: list[Edge]
    config: BlueprintConfig
    status: str
    created_at: datetime
    updated_at: datetime

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def has_edge(self, source: str, target: str) -> bool:
        return any(e.source == source and e.target == target for e in self.edges)

    def touch(self, floor: Optional[datetime] = None) -> None:
        """Refresh ``updated_at`` without ever moving it backwards."""
        candidates = [utc_now(), self.updated_at, self.created_at]
        if floor is not None:
            candidates.append(floor)
        self.updated_at = max(candidates)


def create_default(
    project_name: Optional[str] = None,
    chain: Optional[str] = None,
) -> Blueprint:
    """Return an empty draft blueprint with the default project/network config."""
    now = utc_now()
    return Blueprint(
        id=new_id(),
        version=SCHEMA_VERSION,
        nodes=[],
        edges=[],
        config=BlueprintConfig(
            project=ProjectConfig(
                name=project_name or settings.default_project_name,
                description="A Web3 application composed on the forge canvas",
                version="0.1.0",
                license="MIT",
                keywords=["web3", "dapp"],
            ),
            network=network_preset(chain or settings.default_chain),
            generate_docs=True,
            deploy_on_generate=False,
        ),
        status=STATUS_DRAFT,
        created_at=now,
        updated_at=now,
    )
