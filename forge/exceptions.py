"""Common exceptions for the blueprint core."""

from __future__ import annotations

from typing import Any, Optional


class ForgeError(Exception):
    """Base exception for all dapp-forge errors."""


class MalformedDocument(ForgeError, ValueError):
    """Raised when an imported blueprint document cannot be accepted.

    ``errors`` holds one ``{"path": ..., "message": ...}`` dict per problem.
    """

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or [{"path": "", "message": message}]


class CyclicGraphError(ForgeError):
    """Raised when tiering is asked to lay out a graph that contains a cycle."""

    def __init__(self, nodes: list[int]) -> None:
        super().__init__(f"Graph contains a cycle through nodes {nodes}")
        self.nodes = nodes


class TemplateError(ForgeError, ValueError):
    """Raised when a template references node indices it does not have."""


class UnknownTemplateError(ForgeError, KeyError):
    """Raised when a template id is not in the library."""

    def __str__(self) -> str:
        return f"Unknown template: {self.args[0]!r}"
