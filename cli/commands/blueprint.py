"""Blueprint file and graph editing commands."""

import json
from pathlib import Path
from typing import Any, Optional

import typer

from forge.blueprint.models import Blueprint
from forge.blueprint.serialization import validate_document
from forge.blueprint.session import BlueprintSession
from forge.config import settings
from forge.exceptions import CyclicGraphError, MalformedDocument, UnknownTemplateError
from forge.templates.layout import relayout_blueprint
from forge.templates.library import get_template

from cli.context import (
    load_active_session,
    load_context,
    read_session,
    require_context,
    save_context,
    write_session,
)
from cli.rendering import render_blueprint

node_app = typer.Typer(help="Add, remove and configure nodes in the active blueprint.")
edge_app = typer.Typer(help="Connect and disconnect nodes in the active blueprint.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _set_active(path: Path) -> None:
    ctx = load_context()
    ctx.active_blueprint_path = str(path.resolve())
    save_context(ctx)


def _parse_config(raw: Optional[str]) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        typer.echo(f"❌ Config is not valid JSON: {exc}")
        raise typer.Exit(code=1) from exc
    if not isinstance(value, dict):
        typer.echo("❌ Config must be a JSON object.")
        raise typer.Exit(code=1)
    return value


def _resolve_node(blueprint: Blueprint, ref: str) -> Optional[str]:
    """Match a full node id or a unique id prefix."""
    if blueprint.get_node(ref) is not None:
        return ref
    matches = [n.id for n in blueprint.nodes if n.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _require_node(blueprint: Blueprint, ref: str) -> str:
    node_id = _resolve_node(blueprint, ref)
    if node_id is None:
        typer.echo(f"❌ No single node matches '{ref}'.")
        raise typer.Exit(code=1)
    return node_id


# ---------------------------------------------------------------------------
# Blueprint files
# ---------------------------------------------------------------------------

def blueprint_new(
    path: Optional[Path] = typer.Argument(
        None, help="Where to write the new blueprint JSON.  Defaults to <workspace>/<id>.json."
    ),
    template: Optional[str] = typer.Option(None, "--template", "-t", help="Template id to start from."),
    name: Optional[str] = typer.Option(None, "--name", help="Project name."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Create a new blueprint file and make it active."""
    if path is not None and path.exists() and not force:
        typer.echo(f"❌ {path} already exists (use --force to overwrite).")
        raise typer.Exit(code=1)

    session = BlueprintSession()
    if template:
        try:
            session.apply_template(get_template(template))
        except UnknownTemplateError as exc:
            typer.echo(f"❌ {exc}")
            raise typer.Exit(code=1) from exc
    if name:
        session.update_config(project={"name": name})
    if path is None:
        settings.ensure_workspace()
        path = settings.workspace_dir / f"{session.blueprint.id}.json"

    write_session(session, path)
    _set_active(path)
    bp = session.blueprint
    typer.echo(f"✅ Blueprint created: {bp.config.project.name} ({bp.id})")
    if template:
        typer.echo(f"   From template '{template}': {len(bp.nodes)} nodes, {len(bp.edges)} edges")
    typer.echo(f"📂 Active blueprint: {path}")


def blueprint_use(
    path: Path = typer.Argument(..., help="Existing blueprint JSON file."),
) -> None:
    """Switch the active blueprint file."""
    if not path.exists():
        typer.echo(f"❌ {path} does not exist.")
        raise typer.Exit(code=1)
    try:
        session = read_session(path)
    except MalformedDocument as exc:
        typer.echo(f"❌ {path} is not a valid blueprint: {exc}")
        raise typer.Exit(code=1) from exc
    _set_active(path)
    typer.echo(f"📂 Active blueprint: {session.blueprint.config.project.name} ({path})")


@require_context
def blueprint_show() -> None:
    """Show the active blueprint as tier columns plus its edges."""
    session, path = load_active_session()
    bp = session.blueprint
    network = bp.config.network

    typer.echo(f"\n📐 Blueprint: {bp.config.project.name}")
    typer.echo(f"   ID: {bp.id}")
    typer.echo(f"   File: {path}")
    typer.echo(f"   Network: {network.name} (chain {network.chain_id})")
    typer.echo(f"   Status: {bp.status}   Nodes: {len(bp.nodes)}   Edges: {len(bp.edges)}")
    typer.echo("-" * 40)
    typer.echo(render_blueprint(bp))
    typer.echo("")


def blueprint_validate(
    path: Path = typer.Argument(..., help="Blueprint JSON file to check."),
) -> None:
    """Validate a blueprint file without opening it."""
    if not path.exists():
        typer.echo(f"❌ {path} does not exist.")
        raise typer.Exit(code=1)
    report = validate_document(path.read_text(encoding="utf-8"))
    for err in report.errors:
        typer.echo(f"  error   {err['path'] or '<root>'}: {err['message']}")
    for warn in report.warnings:
        typer.echo(f"  warning {warn['path']}: {warn['message']}")
    if not report.valid:
        typer.echo(f"❌ {path} is invalid.")
        raise typer.Exit(code=1)
    typer.echo(f"✅ {path} is valid.")


@require_context
def blueprint_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout."),
) -> None:
    """Print (or write) the deterministic JSON export of the active blueprint."""
    session, _ = load_active_session()
    if output is None:
        typer.echo(session.export())
        return
    write_session(session, output)
    typer.echo(f"✅ Exported to {output}")


@require_context
def blueprint_relayout() -> None:
    """Re-flow node positions of the active blueprint by dependency tier."""
    session, path = load_active_session()
    try:
        layout = relayout_blueprint(session)
    except CyclicGraphError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1) from exc
    write_session(session, path)
    columns = max(layout.tiers.values(), default=-1) + 1
    typer.echo(f"✅ Laid out {len(layout.tiers)} nodes in {columns} tier(s).")


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@node_app.command("add")
@require_context
def node_add(
    block_type: str = typer.Argument(..., help="Block type, e.g. erc20-stylus."),
    x: float = typer.Option(0.0, "--x", help="Canvas x coordinate."),
    y: float = typer.Option(0.0, "--y", help="Canvas y coordinate."),
    config: Optional[str] = typer.Option(None, "--config", help="JSON object of config overrides."),
) -> None:
    """Add a node with catalog defaults merged with --config."""
    overrides = _parse_config(config)
    session, path = load_active_session()
    try:
        node = session.add_node(block_type, (x, y), overrides)
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1) from exc
    write_session(session, path)
    typer.echo(f"✅ Added {node.type} node {node.id}")


@node_app.command("rm")
@require_context
def node_rm(
    node_ref: str = typer.Argument(..., help="Node id or unique id prefix."),
) -> None:
    """Remove a node and every edge touching it."""
    session, path = load_active_session()
    node_id = _resolve_node(session.blueprint, node_ref)
    if node_id is None or not session.remove_node(node_id):
        typer.echo(f"No node matches '{node_ref}'; nothing removed.")
        return
    write_session(session, path)
    typer.echo(f"🗑️  Removed node {node_id}")


@node_app.command("config")
@require_context
def node_config(
    node_ref: str = typer.Argument(..., help="Node id or unique id prefix."),
    config: str = typer.Argument(..., help="JSON object merged into the node config."),
) -> None:
    """Shallow-merge a JSON object into a node's config."""
    partial = _parse_config(config)
    session, path = load_active_session()
    node = session.update_node_config(_require_node(session.blueprint, node_ref), partial)
    write_session(session, path)
    typer.echo(f"✅ Updated {node.type} node {node.id}")
    typer.echo(json.dumps(node.config, indent=2, sort_keys=True))


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

@edge_app.command("add")
@require_context
def edge_add(
    source: str = typer.Argument(..., help="Source node id or unique prefix."),
    target: str = typer.Argument(..., help="Target node id or unique prefix."),
) -> None:
    """Connect SOURCE to TARGET with a dependency edge."""
    session, path = load_active_session()
    bp = session.blueprint
    edge = session.add_edge(_require_node(bp, source), _require_node(bp, target))
    if edge is None:
        typer.echo("❌ Edge rejected (self-loop or duplicate).")
        raise typer.Exit(code=1)
    write_session(session, path)
    typer.echo(f"🔗 Linked {edge.source[:8]} → {edge.target[:8]} ({edge.id})")


@edge_app.command("rm")
@require_context
def edge_rm(
    edge_id: str = typer.Argument(..., help="Edge id."),
) -> None:
    """Remove an edge by id."""
    session, path = load_active_session()
    if not session.remove_edge(edge_id):
        typer.echo(f"No edge '{edge_id}'; nothing removed.")
        return
    write_session(session, path)
    typer.echo(f"🗑️  Removed edge {edge_id}")
