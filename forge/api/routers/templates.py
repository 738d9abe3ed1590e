"""Template catalog and layout REST endpoints.

Routes
------
GET  /templates                    List templates (optionally ?category=)
GET  /templates/categories         Category filter tabs
GET  /templates/{id}               Full template record
GET  /templates/{id}/layout        Tiers and computed positions for a template
POST /templates/{id}/apply         Replace the blueprint with a template instance
POST /layout/tiers                 Longest-path tiers for an ad-hoc graph
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from forge.api.payloads import ghosts_dict, layout_dict, state_dict
from forge.exceptions import CyclicGraphError, TemplateError, UnknownTemplateError
from forge.templates.layout import check_left_to_right, compute_tiers, template_layout
from forge.templates.library import TEMPLATE_CATEGORIES, get_template, list_templates
from forge.templates.models import Template

router = APIRouter()
layout_router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class TierRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    node_count: int = Field(alias="nodeCount", ge=0)
    edges: list[tuple[int, int]] = Field(default_factory=list)


class ApplyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    y_offset: float = Field(default=0, alias="yOffset")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _summary(template: Template) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "category": template.category,
        "tags": list(template.tags),
        "nodeCount": len(template.nodes),
        "ghostCount": len(template.ghost_nodes),
    }


def _lookup(template_id: str) -> Template:
    try:
        return get_template(template_id)
    except UnknownTemplateError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[dict[str, Any]])
def list_templates_endpoint(category: Optional[str] = None) -> list[dict[str, Any]]:
    """Return template summaries in catalog order."""
    return [_summary(t) for t in list_templates(category)]


@router.get("/categories", response_model=list[dict[str, str]])
def list_categories_endpoint() -> list[dict[str, str]]:
    return TEMPLATE_CATEGORIES


@router.get("/{template_id}", response_model=dict[str, Any])
def get_template_endpoint(template_id: str) -> dict[str, Any]:
    return _lookup(template_id).to_dict()


@router.get("/{template_id}/layout", response_model=dict[str, Any])
def get_template_layout_endpoint(template_id: str, y_offset: float = 0) -> dict[str, Any]:
    """Return computed tiers and positions, plus any left-to-right violations."""
    template = _lookup(template_id)
    try:
        layout = template_layout(template, y_offset=y_offset)
    except CyclicGraphError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    combined = layout.combined_tiers()
    return {
        **layout_dict(layout),
        "violations": [
            list(pair)
            for pair in check_left_to_right(combined, [*template.edges, *template.ghost_edges])
        ],
    }


@router.post("/{template_id}/apply", response_model=dict[str, Any])
def apply_template_endpoint(
    template_id: str,
    request: Request,
    body: Optional[ApplyRequest] = None,
) -> dict[str, Any]:
    """Replace the session blueprint with a fresh instance of the template."""
    template = _lookup(template_id)
    session = request.app.state.session
    session.apply_template(template, y_offset=body.y_offset if body else 0)
    return {**state_dict(session), **ghosts_dict(session)}


@layout_router.post("/tiers", response_model=dict[str, Any])
def compute_tiers_endpoint(body: TierRequest) -> dict[str, Any]:
    """Compute longest-path tiers; 422 on a cycle or an out-of-range index."""
    try:
        tiers = compute_tiers(body.node_count, body.edges)
    except CyclicGraphError as exc:
        raise HTTPException(
            status_code=422, detail={"message": str(exc), "nodes": exc.nodes}
        ) from exc
    except TemplateError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"tiers": tiers}
