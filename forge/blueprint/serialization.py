"""JSON export / import for blueprints.

The document format is the contract shared with downstream tooling::

    {id, version, nodes, edges, config, status, createdAt, updatedAt}

with ``nodes[i] = {id, type, position: {x, y}, config}`` and
``edges[i] = {id, source, target, type}``.  Export is deterministic (sorted
keys, two-space indent) so documents diff cleanly.

Import is all-or-nothing: the raw text is parsed, its shape validated with
pydantic, and the graph invariants checked before any :class:`Blueprint` is
built.  Every failure surfaces as :class:`~forge.exceptions.MalformedDocument`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, ValidationError, field_validator

from forge.blueprint.catalog import BlockCatalog, default_catalog
from forge.blueprint.identifiers import format_timestamp, new_id, utc_now
from forge.blueprint.models import (
    EDGE_DEPENDENCY,
    SCHEMA_VERSION,
    STATUS_DRAFT,
    Blueprint,
    BlueprintConfig,
    Edge,
    NetworkConfig,
    Node,
    Position,
    ProjectConfig,
)
from forge.exceptions import MalformedDocument

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Document schemas
# ---------------------------------------------------------------------------

class _Doc(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PositionDoc(_Doc):
    x: FiniteFloat
    y: FiniteFloat


class NodeDoc(_Doc):
    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    position: PositionDoc
    config: dict[str, Any] = Field(default_factory=dict)


class EdgeDoc(_Doc):
    id: str = Field(min_length=1)
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    type: Literal["dependency"] = EDGE_DEPENDENCY


class ProjectDoc(_Doc):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    version: str = "0.1.0"
    license: str = "MIT"
    keywords: list[str] = Field(default_factory=list)


class NetworkDoc(_Doc):
    chain_id: int = Field(alias="chainId", gt=0)
    name: str
    rpc_url: Optional[str] = Field(default=None, alias="rpcUrl")
    explorer_url: Optional[str] = Field(default=None, alias="explorerUrl")
    is_testnet: bool = Field(default=False, alias="isTestnet")


class ConfigDoc(_Doc):
    project: ProjectDoc
    network: NetworkDoc
    generate_docs: bool = Field(default=True, alias="generateDocs")
    deploy_on_generate: bool = Field(default=False, alias="deployOnGenerate")


class BlueprintDoc(_Doc):
    id: Optional[str] = None
    version: str = SCHEMA_VERSION
    nodes: list[NodeDoc]
    edges: list[EdgeDoc]
    config: ConfigDoc
    status: str = STATUS_DRAFT
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ---------------------------------------------------------------------------
# Validation report
# ---------------------------------------------------------------------------

@dataclass
class ValidationReport:
    valid: bool
    errors: list[dict[str, str]] = field(default_factory=list)
    warnings: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "warnings": self.warnings}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _pydantic_errors(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def _integrity_errors(doc: BlueprintDoc) -> list[dict[str, str]]:
    """Check graph invariants that pydantic cannot express on its own."""
    errors: list[dict[str, str]] = []
    seen_ids: set[str] = set()
    node_ids: set[str] = set()

    for i, node in enumerate(doc.nodes):
        if node.id in seen_ids:
            errors.append({"path": f"nodes.{i}.id", "message": f"Duplicate id {node.id!r}"})
        seen_ids.add(node.id)
        node_ids.add(node.id)

    pairs: set[tuple[str, str]] = set()
    for i, edge in enumerate(doc.edges):
        path = f"edges.{i}"
        if edge.id in seen_ids:
            errors.append({"path": f"{path}.id", "message": f"Duplicate id {edge.id!r}"})
        seen_ids.add(edge.id)
        for end in ("source", "target"):
            ref = getattr(edge, end)
            if ref not in node_ids:
                errors.append({"path": f"{path}.{end}", "message": f"Unknown node {ref!r}"})
        if edge.source == edge.target:
            errors.append({"path": path, "message": "Edge source and target must differ"})
        if (edge.source, edge.target) in pairs:
            errors.append({
                "path": path,
                "message": f"Duplicate edge {edge.source!r} -> {edge.target!r}",
            })
        pairs.add((edge.source, edge.target))

    return errors


def _parse(source: Union[str, bytes, dict[str, Any]]) -> BlueprintDoc:
    if isinstance(source, (str, bytes)):
        try:
            raw = json.loads(source)
        except ValueError as exc:
            raise MalformedDocument(f"Invalid blueprint JSON: {exc}") from exc
    else:
        raw = source

    if not isinstance(raw, dict):
        raise MalformedDocument("Blueprint document must be a JSON object")

    try:
        doc = BlueprintDoc.model_validate(raw)
    except ValidationError as exc:
        errors = _pydantic_errors(exc)
        raise MalformedDocument(
            f"Blueprint document failed validation ({len(errors)} error(s))", errors
        ) from exc

    errors = _integrity_errors(doc)
    if errors:
        raise MalformedDocument(
            f"Blueprint graph is inconsistent ({len(errors)} error(s))", errors
        )
    return doc


def _project_config(doc: ProjectDoc) -> ProjectConfig:
    return ProjectConfig(
        name=doc.name,
        description=doc.description,
        version=doc.version,
        license=doc.license,
        keywords=doc.keywords,
    )


def _network_config(doc: NetworkDoc) -> NetworkConfig:
    return NetworkConfig(
        chain_id=doc.chain_id,
        name=doc.name,
        rpc_url=doc.rpc_url,
        explorer_url=doc.explorer_url,
        is_testnet=doc.is_testnet,
    )


def _merge_section(
    section: str, schema: type[_Doc], current: Any, changes: Mapping[str, Any]
) -> Any:
    try:
        return schema.model_validate({**vars(current), **changes})
    except ValidationError as exc:
        detail = "; ".join(f"{e['path']}: {e['message']}" for e in _pydantic_errors(exc))
        raise ValueError(f"Invalid {section} config: {detail}") from exc


def _build(doc: BlueprintDoc) -> Blueprint:
    now = utc_now()
    created_at = doc.created_at or now
    cfg = doc.config

    blueprint = Blueprint(
        id=doc.id or new_id(),
        version=doc.version,
        nodes=[
            Node(
                id=n.id,
                type=n.type,
                position=Position(x=n.position.x, y=n.position.y),
                config=dict(n.config),
            )
            for n in doc.nodes
        ],
        edges=[Edge(id=e.id, source=e.source, target=e.target, type=e.type) for e in doc.edges],
        config=BlueprintConfig(
            project=_project_config(cfg.project),
            network=_network_config(cfg.network),
            generate_docs=cfg.generate_docs,
            deploy_on_generate=cfg.deploy_on_generate,
        ),
        status=doc.status,
        created_at=created_at,
        updated_at=max(now, created_at),
    )
    logger.info(
        "Imported blueprint %s (%d nodes, %d edges)",
        blueprint.id, len(blueprint.nodes), len(blueprint.edges),
    )
    return blueprint


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def blueprint_to_dict(blueprint: Blueprint) -> dict[str, Any]:
    """Convert a blueprint into the camelCase document structure."""
    project = blueprint.config.project
    network = blueprint.config.network
    return {
        "id": blueprint.id,
        "version": blueprint.version,
        "nodes": [
            {
                "id": n.id,
                "type": n.type,
                "position": n.position.to_dict(),
                "config": n.config,
            }
            for n in blueprint.nodes
        ],
        "edges": [
            {"id": e.id, "source": e.source, "target": e.target, "type": e.type}
            for e in blueprint.edges
        ],
        "config": {
            "project": {
                "name": project.name,
                "description": project.description,
                "version": project.version,
                "license": project.license,
                "keywords": list(project.keywords),
            },
            "network": {
                "chainId": network.chain_id,
                "name": network.name,
                "rpcUrl": network.rpc_url,
                "explorerUrl": network.explorer_url,
                "isTestnet": network.is_testnet,
            },
            "generateDocs": blueprint.config.generate_docs,
            "deployOnGenerate": blueprint.config.deploy_on_generate,
        },
        "status": blueprint.status,
        "createdAt": format_timestamp(blueprint.created_at),
        "updatedAt": format_timestamp(blueprint.updated_at),
    }


def export_blueprint(blueprint: Blueprint) -> str:
    """Serialise a blueprint to deterministic, diff-friendly JSON text."""
    return json.dumps(blueprint_to_dict(blueprint), indent=2, sort_keys=True, ensure_ascii=False)


def blueprint_from_dict(raw: dict[str, Any]) -> Blueprint:
    """Build a blueprint from an already-decoded document.

    Raises:
        MalformedDocument: If the shape or the graph invariants are violated.
    """
    return _build(_parse(raw))


def merge_project_config(current: ProjectConfig, changes: Mapping[str, Any]) -> ProjectConfig:
    """Return a new project section with *changes* applied.

    The result is held to the same rules as an imported document, so a
    session can never hold a project section that would fail to re-import.

    Raises:
        ValueError: If the merged section is invalid.
    """
    return _project_config(_merge_section("project", ProjectDoc, current, changes))


def merge_network_config(current: NetworkConfig, changes: Mapping[str, Any]) -> NetworkConfig:
    """Network counterpart of :func:`merge_project_config`."""
    return _network_config(_merge_section("network", NetworkDoc, current, changes))


def import_blueprint(text: Union[str, bytes]) -> Blueprint:
    """Parse JSON text into a new :class:`Blueprint`.

    A missing ``id`` is replaced with a fresh one and ``updatedAt`` is always
    set to the import time.

    Raises:
        MalformedDocument: On invalid JSON, a wrong shape, or a broken graph.
    """
    if not isinstance(text, (str, bytes)):
        raise MalformedDocument(f"Expected JSON text, got {type(text).__name__}")
    return _build(_parse(text))


def validate_document(
    source: Union[str, bytes, dict[str, Any]],
    catalog: Optional[BlockCatalog] = None,
) -> ValidationReport:
    """Validate a document without raising.

    Unknown block types and schema major-version mismatches are reported as
    warnings; they do not make the document invalid.
    """
    try:
        doc = _parse(source)
    except MalformedDocument as exc:
        return ValidationReport(valid=False, errors=list(exc.errors))

    known = catalog if catalog is not None else default_catalog
    warnings: list[dict[str, str]] = []
    if doc.version.split(".")[0] != SCHEMA_VERSION.split(".")[0]:
        warnings.append({
            "path": "version",
            "message": f"Schema version {doc.version} differs from supported {SCHEMA_VERSION}",
        })
    for i, node in enumerate(doc.nodes):
        if node.type not in known:
            warnings.append({"path": f"nodes.{i}.type", "message": f"Unknown block type {node.type!r}"})
    return ValidationReport(valid=True, warnings=warnings)
