"""forge CLI: entry-point for blueprint editing.

Usage:
    forge --help
    python cli/main.py --help

Command groups:
    new / use / show / validate / export / relayout   → blueprint files
    node                                              → node editing
    edge                                              → edge editing
    template                                          → template catalog
    serve                                             → REST API (uvicorn)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from forge.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from forge.config import setup_logging

from cli.commands import blueprint as blueprint_cmds
from cli.commands.template import template_app

app = typer.Typer(
    name="forge",
    help="dapp-forge blueprint CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override FORGE_LOG_LEVEL (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    """Compose dapp blueprints from typed blocks."""
    setup_logging(log_level)


# ---------------------------------------------------------------------------
# Blueprint files
# ---------------------------------------------------------------------------
app.command("new")(blueprint_cmds.blueprint_new)
app.command("use")(blueprint_cmds.blueprint_use)
app.command("show")(blueprint_cmds.blueprint_show)
app.command("validate")(blueprint_cmds.blueprint_validate)
app.command("export")(blueprint_cmds.blueprint_export)
app.command("relayout")(blueprint_cmds.blueprint_relayout)

# ---------------------------------------------------------------------------
# Graph editing and templates
# ---------------------------------------------------------------------------
app.add_typer(blueprint_cmds.node_app, name="node")
app.add_typer(blueprint_cmds.edge_app, name="edge")
app.add_typer(template_app, name="template")


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the blueprint REST API with uvicorn."""
    import uvicorn

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run("forge.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
