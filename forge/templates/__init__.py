"""Template catalog and layout package.

Public re-exports so callers can write::

    from forge.templates import compute_tiers, get_template
"""

from forge.templates.layout import compute_tiers, layout_graph, template_layout
from forge.templates.library import TEMPLATES, get_template, list_templates
from forge.templates.models import Template, TemplateEdge, TemplateNode

__all__ = [
    "TEMPLATES",
    "Template",
    "TemplateEdge",
    "TemplateNode",
    "compute_tiers",
    "get_template",
    "layout_graph",
    "list_templates",
    "template_layout",
]
