"""Persistent state management for the forge CLI.

Tracks the "active blueprint" file and user preferences.
Stored in `~/.forge_cli/context.json`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from functools import wraps
from pathlib import Path
from typing import Any, Callable

import typer

from forge.blueprint.serialization import import_blueprint
from forge.blueprint.session import BlueprintSession
from forge.config import settings
from forge.exceptions import MalformedDocument


@dataclass
class CliContext:
    active_blueprint_path: str | None = None
    user_preferences: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> CliContext:
        try:
            raw = json.loads(data)
            return cls(**raw)
        except (json.JSONDecodeError, TypeError):
            return cls()


def _get_context_path() -> Path:
    """Return the path to the context JSON file."""
    return settings.cli_config_dir / "context.json"


def load_context() -> CliContext:
    """Load the CLI context from disk. Returns defaults if missing/corrupt."""
    path = _get_context_path()
    if not path.exists():
        return CliContext()
    return CliContext.from_json(path.read_text(encoding="utf-8"))


def save_context(ctx: CliContext) -> None:
    """Save the CLI context to disk."""
    settings.cli_config_dir.mkdir(parents=True, exist_ok=True)
    _get_context_path().write_text(ctx.to_json(), encoding="utf-8")


def require_context(func: Callable) -> Callable:
    """Decorator for CLI commands that require an active blueprint.

    Aborts execution if no blueprint is active.  The command calls
    :func:`load_active_session` itself when it needs the graph.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = load_context()
        if not ctx.active_blueprint_path:
            typer.echo("❌ No active blueprint selected.")
            typer.echo("Run 'forge new [path]' or 'forge use <path>' first.")
            raise typer.Exit(code=1)
        return func(*args, **kwargs)

    return wrapper


# ---------------------------------------------------------------------------
# Blueprint file helpers
# ---------------------------------------------------------------------------

def active_blueprint_path() -> Path:
    path = load_context().active_blueprint_path
    if not path:
        raise typer.Exit(code=1)
    return Path(path)


def read_session(path: Path) -> BlueprintSession:
    """Open a blueprint file as a new editing session.

    Raises:
        MalformedDocument: The file does not hold a valid blueprint.
    """
    return BlueprintSession(import_blueprint(path.read_text(encoding="utf-8")))


def write_session(session: BlueprintSession, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(session.export() + "\n", encoding="utf-8")


def load_active_session() -> tuple[BlueprintSession, Path]:
    """Open the active blueprint file; exit with code 1 if it is unusable."""
    path = active_blueprint_path()
    if not path.exists():
        typer.echo(f"❌ Active blueprint file is missing: {path}")
        raise typer.Exit(code=1)
    try:
        return read_session(path), path
    except MalformedDocument as exc:
        typer.echo(f"❌ {path} is not a valid blueprint: {exc}")
        raise typer.Exit(code=1) from exc
