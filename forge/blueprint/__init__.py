"""Blueprint graph package.

Public re-exports so callers can write::

    from forge.blueprint import BlueprintSession, create_default
    from forge.blueprint import export_blueprint, import_blueprint
"""

from forge.blueprint.models import Blueprint, Edge, GhostNode, Node, Position, create_default
from forge.blueprint.serialization import export_blueprint, import_blueprint, validate_document
from forge.blueprint.session import BlueprintSession

__all__ = [
    "Blueprint",
    "BlueprintSession",
    "Edge",
    "GhostNode",
    "Node",
    "Position",
    "create_default",
    "export_blueprint",
    "import_blueprint",
    "validate_document",
]
