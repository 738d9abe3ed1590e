"""FastAPI application factory.

Lifespan
--------
The factory attaches a single
:class:`~forge.blueprint.session.BlueprintSession`, shared across all
requests via ``request.app.state.session``, and logging is configured on
startup.  Editing is single-writer, so no locking is done around it.

Routers
-------
All endpoint groups are mounted under their respective path prefix:

    /blueprint  graph mutation, selection, history, ghosts, import/export
    /templates  template catalog, layout preview, instantiation
    /layout     ad-hoc tier computation
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forge.blueprint.session import BlueprintSession
from forge.config import setup_logging

from forge.api.routers import blueprint as blueprint_router
from forge.api.routers import templates as templates_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup."""
    setup_logging()
    yield


def create_app(session: Optional[BlueprintSession] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        session: Session to serve.  A fresh default session is created when
            omitted.
    """
    app = FastAPI(
        title="dapp-forge API",
        description=(
            "REST interface for the dapp-forge blueprint core. "
            "Exposes graph mutation with undo/redo, the ghost suggestion overlay, "
            "JSON import/export, and the template catalog with its tiered layout."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.session = session if session is not None else BlueprintSession()

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(blueprint_router.router, prefix="/blueprint", tags=["blueprint"])
    app.include_router(templates_router.router, prefix="/templates", tags=["templates"])
    app.include_router(templates_router.layout_router, prefix="/layout", tags=["layout"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn forge.api.app:app --reload
app = create_app()
