"""
Main entrypoint for the Number Market API.

This module assembles the FastAPI application, sets up logging and
includes versioned routers.  The ``create_app`` function builds and
configures the app, which is then instantiated at module import time
as ``app``, e.g.::

    uvicorn number_market_api.app.main:app --reload
"""

from fastapi import FastAPI

from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging
from .api.v1.router import router as v1_router


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that the startup hook can log migrations.
    setup_logging(debug=settings.debug)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    app.include_router(v1_router, prefix="/api/v1")

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file on first start and applies pending
        # migrations.
        init_db()

    return app


app = create_app()
