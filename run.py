"""Entry point for the Item Index API server.

Builds the application and serves it with Uvicorn.  Host and port come
from ``API_HOST`` and ``API_PORT`` (defaults ``0.0.0.0`` and ``4000``);
every other setting is read from the environment as described in
``item_index_api/app/core/config.py``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from item_index_api.app.core.config import settings
from item_index_api.app.main import app


async def run_api() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
        # logging is set up by create_app; keep uvicorn from replacing it
        log_config=None,
    )
    server = Server(config)
    logging.getLogger(__name__).info(
        "Starting %s on http://%s:%s", settings.project_name, settings.api_host, settings.api_port
    )
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
