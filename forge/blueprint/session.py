"""Editing session: the only sanctioned way to evolve a :class:`Blueprint`.

A :class:`BlueprintSession` owns one blueprint plus the state that travels
with interactive editing (selection, undo/redo history, the ghost overlay of
suggested nodes).  Every public mutation leaves the graph invariants intact:

* every edge endpoint is a node in the blueprint;
* no self-loops and no duplicate ``(source, target)`` pairs;
* node and edge ids are unique;
* ``updated_at`` never goes backwards and never precedes ``created_at``.

Missing ids are silent no-ops and structurally invalid edge requests return
``None``.  Neither case raises, records history, or touches ``updated_at``.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional, Union

from forge.blueprint.catalog import DefaultConfigSource, default_catalog
from forge.blueprint.identifiers import new_id
from forge.blueprint.models import (
    Blueprint,
    Edge,
    GhostNode,
    Node,
    Position,
    PositionLike,
    create_default,
)
from forge.blueprint.serialization import (
    export_blueprint,
    import_blueprint,
    merge_network_config,
    merge_project_config,
)
from forge.config import settings

if TYPE_CHECKING:
    from forge.templates.models import Template

logger = logging.getLogger(__name__)

_NODE_FIELDS = frozenset({"type", "position", "config"})
_GHOST_FIELDS = _NODE_FIELDS | {"data"}
_PROJECT_FIELDS = frozenset({"name", "description", "version", "license", "keywords"})
_NETWORK_FIELDS = frozenset({"chain_id", "name", "rpc_url", "explorer_url", "is_testnet"})


def _check_type(node_type: Any) -> str:
    if not isinstance(node_type, str) or not node_type:
        raise ValueError(f"Node type must be a non-empty string, got {node_type!r}")
    return node_type


def _check_mapping(name: str, value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Node {name} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _edge_rejection(
    source: str, target: str, known_ids: set[str], edges: list[Edge]
) -> Optional[str]:
    if source == target:
        return "self-loop"
    if source not in known_ids or target not in known_ids:
        return "unknown endpoint"
    if any(e.source == source and e.target == target for e in edges):
        return "duplicate"
    return None


def _coerce_updates(updates: dict[str, Any]) -> None:
    """Validate replacement node fields in place before anything is applied."""
    for name, value in updates.items():
        if name == "type":
            updates[name] = _check_type(value)
        elif name == "position":
            updates[name] = Position.coerce(value)
        else:
            updates[name] = _check_mapping(name, value)


class BlueprintSession:
    """Mutation API over a single in-memory blueprint.

    Args:
        blueprint: Starting blueprint.  Defaults to :func:`create_default`.
        catalog: Source of per-type default configs.  Defaults to the
            built-in block catalog.
        history_size: Maximum number of undo steps kept.  Defaults to
            ``settings.history_size``.
    """

    def __init__(
        self,
        blueprint: Optional[Blueprint] = None,
        catalog: Optional[DefaultConfigSource] = None,
        history_size: Optional[int] = None,
    ) -> None:
        self.blueprint = blueprint if blueprint is not None else create_default()
        self.catalog = catalog if catalog is not None else default_catalog
        self.history_size = settings.history_size if history_size is None else history_size
        self.selected_node_id: Optional[str] = None
        self.ghost_nodes: list[GhostNode] = []
        self.ghost_edges: list[Edge] = []
        self._undo_stack: list[Blueprint] = []
        self._redo_stack: list[Blueprint] = []
        self._transaction_depth = 0
        self._transaction_dirty = False

    # ------------------------------------------------------------------
    # History plumbing
    # ------------------------------------------------------------------
    def _save_to_history(self) -> None:
        """Snapshot the current blueprint before a mutation is applied."""
        if self._transaction_depth:
            if self._transaction_dirty:
                return
            self._transaction_dirty = True
        self._redo_stack.clear()
        if self.history_size <= 0:
            return
        self._undo_stack.append(copy.deepcopy(self.blueprint))
        del self._undo_stack[: -self.history_size]

    @contextmanager
    def transaction(self) -> Iterator[BlueprintSession]:
        """Group several mutations into a single undo step.

        Nested transactions join the outermost one.
        """
        outermost = self._transaction_depth == 0
        if outermost:
            self._transaction_dirty = False
        self._transaction_depth += 1
        try:
            yield self
        finally:
            self._transaction_depth -= 1
            if outermost:
                self._transaction_dirty = False

    def _restore(self, snapshot: Blueprint) -> None:
        floor = self.blueprint.updated_at
        self.blueprint = snapshot
        self.blueprint.touch(floor)
        if self.selected_node_id is not None and snapshot.get_node(self.selected_node_id) is None:
            self.selected_node_id = None
        known = snapshot.node_ids() | {g.id for g in self.ghost_nodes}
        self.ghost_edges = [
            e for e in self.ghost_edges if e.source in known and e.target in known
        ]

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> bool:
        """Restore the blueprint as it was before the last mutation."""
        if not self._undo_stack:
            return False
        self._redo_stack.append(copy.deepcopy(self.blueprint))
        self._restore(self._undo_stack.pop())
        return True

    def redo(self) -> bool:
        """Re-apply the last undone mutation."""
        if not self._redo_stack:
            return False
        self._undo_stack.append(copy.deepcopy(self.blueprint))
        self._restore(self._redo_stack.pop())
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_node(
        self,
        node_type: str,
        position: PositionLike,
        config_overrides: Optional[Mapping[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> Node:
        """Single construction path for live nodes (fresh or promoted)."""
        node_type = _check_type(node_type)
        config = dict(self.catalog.get_default_config(node_type))
        if config_overrides:
            config.update(_check_mapping("config", config_overrides))
        return Node(
            id=node_id or new_id(),
            type=node_type,
            position=Position.coerce(position),
            config=config,
        )

    def _get_ghost(self, ghost_id: str) -> Optional[GhostNode]:
        for ghost in self.ghost_nodes:
            if ghost.id == ghost_id:
                return ghost
        return None

    def _drop_ghosts(self, ghost_ids: set[str]) -> None:
        self.ghost_nodes = [g for g in self.ghost_nodes if g.id not in ghost_ids]
        self.ghost_edges = [
            e for e in self.ghost_edges if e.source not in ghost_ids and e.target not in ghost_ids
        ]

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def add_node(
        self,
        node_type: str,
        position: PositionLike,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> Node:
        """Create a node with catalog defaults merged with *config_overrides*.

        Raises:
            ValueError: If *node_type* is empty, *position* is not a pair of
                finite numbers, or *config_overrides* is not a mapping.
        """
        node = self._build_node(node_type, position, config_overrides)
        self._save_to_history()
        self.blueprint.nodes.append(node)
        self.blueprint.touch()
        return node

    def update_node(self, node_id: str, **updates: Any) -> Optional[Node]:
        """Replace ``type``, ``position`` and/or ``config`` on a node.

        Returns the updated node, or ``None`` if *node_id* is unknown.

        Raises:
            ValueError: On a field name other than ``type``, ``position``
                or ``config``, or an invalid value for one of them.
        """
        unknown = set(updates) - _NODE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update node field(s): {', '.join(sorted(unknown))}")
        node = self.blueprint.get_node(node_id)
        if node is None:
            logger.debug("update_node ignored: no node %s", node_id)
            return None
        _coerce_updates(updates)
        self._save_to_history()
        for name, value in updates.items():
            setattr(node, name, value)
        self.blueprint.touch()
        return node

    def update_node_config(self, node_id: str, partial: Mapping[str, Any]) -> Optional[Node]:
        """Shallow-merge *partial* into a node's config."""
        partial = _check_mapping("config", partial)
        node = self.blueprint.get_node(node_id)
        if node is None:
            logger.debug("update_node_config ignored: no node %s", node_id)
            return None
        self._save_to_history()
        node.config.update(partial)
        self.blueprint.touch()
        return node

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every edge touching it.

        Returns ``True`` if a node was removed.
        """
        if self.blueprint.get_node(node_id) is None:
            logger.debug("remove_node ignored: no node %s", node_id)
            return False
        self._save_to_history()
        bp = self.blueprint
        bp.nodes = [n for n in bp.nodes if n.id != node_id]
        bp.edges = [e for e in bp.edges if e.source != node_id and e.target != node_id]
        self.ghost_edges = [
            e for e in self.ghost_edges if e.source != node_id and e.target != node_id
        ]
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        bp.touch()
        return True

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------
    def add_edge(self, source: str, target: str) -> Optional[Edge]:
        """Connect *source* to *target*.

        Returns ``None`` without mutating anything for a self-loop, a
        duplicate ordered pair, or an unknown endpoint.
        """
        bp = self.blueprint
        reason = _edge_rejection(source, target, bp.node_ids(), bp.edges)
        if reason:
            logger.debug("add_edge %s -> %s rejected: %s", source, target, reason)
            return None
        edge = Edge(id=new_id(), source=source, target=target)
        self._save_to_history()
        self.blueprint.edges.append(edge)
        self.blueprint.touch()
        return edge

    def remove_edge(self, edge_id: str) -> bool:
        if self.blueprint.get_edge(edge_id) is None:
            logger.debug("remove_edge ignored: no edge %s", edge_id)
            return False
        self._save_to_history()
        self.blueprint.edges = [e for e in self.blueprint.edges if e.id != edge_id]
        self.blueprint.touch()
        return True

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select_node(self, node_id: Optional[str]) -> None:
        """Set the selected node.  Unknown ids clear the selection."""
        if node_id is not None and self.blueprint.get_node(node_id) is None:
            node_id = None
        self.selected_node_id = node_id

    @property
    def selected_node(self) -> Optional[Node]:
        if self.selected_node_id is None:
            return None
        return self.blueprint.get_node(self.selected_node_id)

    # ------------------------------------------------------------------
    # Blueprint config
    # ------------------------------------------------------------------
    def update_config(
        self,
        project: Optional[Mapping[str, Any]] = None,
        network: Optional[Mapping[str, Any]] = None,
        generate_docs: Optional[bool] = None,
        deploy_on_generate: Optional[bool] = None,
    ) -> None:
        """Merge changes into the project/network sections and flags.

        Raises:
            ValueError: On an unknown field, or when the merged project or
                network section would not survive an export and re-import.
                Nothing is changed and no history is recorded.
        """
        for section, given, allowed in (
            ("project", project, _PROJECT_FIELDS),
            ("network", network, _NETWORK_FIELDS),
        ):
            unknown = set(given or {}) - allowed
            if unknown:
                raise ValueError(f"Unknown {section} field(s): {', '.join(sorted(unknown))}")
        if not (project or network) and generate_docs is None and deploy_on_generate is None:
            return

        cfg = self.blueprint.config
        new_project = merge_project_config(cfg.project, project) if project else cfg.project
        new_network = merge_network_config(cfg.network, network) if network else cfg.network

        self._save_to_history()
        cfg.project = new_project
        cfg.network = new_network
        if generate_docs is not None:
            cfg.generate_docs = generate_docs
        if deploy_on_generate is not None:
            cfg.deploy_on_generate = deploy_on_generate
        self.blueprint.touch()

    # ------------------------------------------------------------------
    # Ghost overlay
    # ------------------------------------------------------------------
    def add_ghost_node(
        self,
        node_type: str,
        position: PositionLike,
        data: Optional[Mapping[str, Any]] = None,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> GhostNode:
        """Add a suggested node to the overlay.  The live graph is untouched."""
        base = self._build_node(node_type, position, config_overrides)
        ghost = GhostNode(
            id=base.id,
            type=base.type,
            position=base.position,
            config=base.config,
            data=_check_mapping("data", data) if data is not None else {},
        )
        self.ghost_nodes.append(ghost)
        return ghost

    def add_ghost_edge(self, source: str, target: str) -> Optional[Edge]:
        """Add a suggested edge between live and/or ghost nodes."""
        known = self.blueprint.node_ids() | {g.id for g in self.ghost_nodes}
        reason = _edge_rejection(source, target, known, self.ghost_edges)
        if reason is None and self.blueprint.has_edge(source, target):
            reason = "duplicate"
        if reason:
            logger.debug("add_ghost_edge %s -> %s rejected: %s", source, target, reason)
            return None
        edge = Edge(id=new_id(), source=source, target=target)
        self.ghost_edges.append(edge)
        return edge

    def update_ghost_node(self, ghost_id: str, **updates: Any) -> Optional[GhostNode]:
        unknown = set(updates) - _GHOST_FIELDS
        if unknown:
            raise ValueError(f"Cannot update ghost field(s): {', '.join(sorted(unknown))}")
        ghost = self._get_ghost(ghost_id)
        if ghost is None:
            return None
        _coerce_updates(updates)
        for name, value in updates.items():
            setattr(ghost, name, value)
        return ghost

    def activate_ghost_node(self, ghost_id: str) -> Optional[Node]:
        """Promote a ghost into the live graph.

        The node keeps its id and config; overlay ``data`` is dropped.  Every
        ghost edge whose endpoints are now both live is promoted with it.
        """
        ghost = self._get_ghost(ghost_id)
        if ghost is None:
            logger.debug("activate_ghost_node ignored: no ghost %s", ghost_id)
            return None

        node = self._build_node(ghost.type, ghost.position, ghost.config, node_id=ghost.id)

        self._save_to_history()
        bp = self.blueprint
        bp.nodes.append(node)
        self.ghost_nodes = [g for g in self.ghost_nodes if g.id != ghost_id]

        live = bp.node_ids()
        remaining: list[Edge] = []
        for edge in self.ghost_edges:
            if edge.source in live and edge.target in live:
                if not bp.has_edge(edge.source, edge.target):
                    bp.edges.append(Edge(id=edge.id, source=edge.source, target=edge.target))
            else:
                remaining.append(edge)
        self.ghost_edges = remaining
        bp.touch()
        return node

    def dismiss_ghost_node(self, ghost_id: str) -> bool:
        if self._get_ghost(ghost_id) is None:
            return False
        self._drop_ghosts({ghost_id})
        return True

    def clear_ghosts(self) -> None:
        self.ghost_nodes = []
        self.ghost_edges = []

    def clear_ghost_suggestions(self) -> None:
        """Drop ghosts flagged ``data["isSuggestion"]`` and their edges."""
        self._drop_ghosts({g.id for g in self.ghost_nodes if g.data.get("isSuggestion")})

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------
    def apply_template(self, template: Template, y_offset: float = 0) -> list[Node]:
        """Replace the graph with a template instance as one undo step.

        Core nodes go through :meth:`add_node`; template edge indices are
        translated to the fresh node ids in one pass.  Ghost nodes and edges
        are placed in the overlay, not in the live graph.
        """
        with self.transaction():
            self._save_to_history()
            self._replace(create_default())
            created = [
                self.add_node(
                    tn.type,
                    Position(tn.position.x, tn.position.y + y_offset),
                    tn.config,
                )
                for tn in template.nodes
            ]
            ids = [n.id for n in created]
            for te in template.edges:
                self.add_edge(ids[te.source], ids[te.target])

            for tn in template.ghost_nodes:
                ghost = self.add_ghost_node(
                    tn.type,
                    Position(tn.position.x, tn.position.y + y_offset),
                    config_overrides=tn.config,
                )
                ids.append(ghost.id)
            for te in template.ghost_edges:
                self.add_ghost_edge(ids[te.source], ids[te.target])

        logger.info(
            "Applied template %s (%d nodes, %d ghosts)",
            template.id, len(created), len(template.ghost_nodes),
        )
        return created

    def _replace(self, blueprint: Blueprint) -> None:
        floor = self.blueprint.updated_at
        self.blueprint = blueprint
        self.blueprint.touch(floor)
        self.selected_node_id = None
        self.clear_ghosts()

    def reset(self) -> Blueprint:
        """Discard the current graph and start from a fresh default blueprint."""
        self._save_to_history()
        self._replace(create_default())
        logger.info("Reset blueprint to %s", self.blueprint.id)
        return self.blueprint

    def export(self) -> str:
        return export_blueprint(self.blueprint)

    def import_(self, text: Union[str, bytes]) -> Blueprint:
        """Replace the blueprint with one parsed from JSON *text*.

        Raises:
            MalformedDocument: The document was rejected.  The current
                blueprint, history and overlay are left untouched.
        """
        imported = import_blueprint(text)
        self._save_to_history()
        self.blueprint = imported
        self.selected_node_id = None
        self.clear_ghosts()
        return imported
