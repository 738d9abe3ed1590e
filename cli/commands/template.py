"""Template catalog commands."""

from typing import Optional

import typer

from forge.exceptions import CyclicGraphError, UnknownTemplateError
from forge.templates.layout import check_left_to_right, get_tier_columns, template_layout
from forge.templates.library import TEMPLATE_CATEGORIES, get_template, list_templates
from forge.templates.models import Template

from cli.rendering import render_columns

template_app = typer.Typer(help="Browse the built-in blueprint templates.")


def _lookup(template_id: str) -> Template:
    try:
        return get_template(template_id)
    except UnknownTemplateError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1) from exc


@template_app.command("list")
def template_list(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category."),
) -> None:
    """List templates, optionally filtered by category."""
    templates = list_templates(category)
    if not templates:
        known = ", ".join(c["id"] for c in TEMPLATE_CATEGORIES)
        typer.echo(f"No templates in category {category!r}. Categories: {known}")
        return
    for t in templates:
        typer.echo(f"  {t.id:<28} [{t.category}]  {t.name}  ({len(t.nodes)} nodes, {len(t.ghost_nodes)} ghosts)")


@template_app.command("show")
def template_show(
    template_id: str = typer.Argument(..., help="Template id."),
) -> None:
    """Show a template's blocks, edges and suggested extensions."""
    t = _lookup(template_id)
    combined = t.combined_nodes

    typer.echo(f"\n🧩 {t.name}  [{t.category}]")
    typer.echo(f"   {t.description}")
    if t.tags:
        typer.echo(f"   Tags: {', '.join(t.tags)}")
    typer.echo("-" * 40)
    typer.echo("Blocks:")
    for i, node in enumerate(t.nodes):
        typer.echo(f"  {i:>2}  {node.type}")
    if t.ghost_nodes:
        typer.echo("Suggested:")
        for g, node in enumerate(t.ghost_nodes, start=len(t.nodes)):
            typer.echo(f"  {g:>2}  {node.type}")
    typer.echo("Edges:")
    for e in t.edges:
        typer.echo(f"  {combined[e.source].type} → {combined[e.target].type}")
    for e in t.ghost_edges:
        typer.echo(f"  {combined[e.source].type} ⇢ {combined[e.target].type}")
    if t.explainer:
        typer.echo("")
        typer.echo(t.explainer)
    typer.echo("")


@template_app.command("layout")
def template_layout_cmd(
    template_id: str = typer.Argument(..., help="Template id."),
) -> None:
    """Render a template's computed tier columns."""
    t = _lookup(template_id)
    try:
        layout = template_layout(t)
    except CyclicGraphError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1) from exc

    columns = [[t.nodes[i].type for i in col] for col in get_tier_columns(layout.tiers)]
    ghost_columns = [[t.ghost_nodes[g].type for g in col] for col in get_tier_columns(layout.ghost_tiers)]
    typer.echo(render_columns(columns, ghost_columns=ghost_columns))

    violations = check_left_to_right(layout.combined_tiers(), [*t.edges, *t.ghost_edges])
    if violations:
        typer.echo("")
        typer.echo(f"⚠️  {len(violations)} edge(s) do not flow left-to-right:")
        combined = t.combined_nodes
        for s, target in violations:
            typer.echo(f"  {combined[s].type} → {combined[target].type}")
