"""Entry point for the Number Market API.

Launches the FastAPI application with Uvicorn.  Host and port come
from ``API_HOST`` and ``API_PORT`` (defaults ``0.0.0.0`` and ``8000``);
see ``number_market_api/app/core/config.py`` for the remaining
settings.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from number_market_api.app.core.config import settings
from number_market_api.app.core.logging_config import resolve_log_level
from number_market_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=resolve_log_level(debug=settings.debug),
        # Handlers come from setup_logging, called by create_app.
        log_config=None,
    )
    server = Server(config)
    try:
        await server.serve()
    except Exception:
        logging.exception("API server stopped with an error")
        raise


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
