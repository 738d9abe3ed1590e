"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from forge.api import app

    uvicorn forge.api:app --reload
"""

from forge.api.app import app

__all__ = ["app"]
