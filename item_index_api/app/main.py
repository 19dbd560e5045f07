"""
Main entrypoint for the Item Index API.

This module assembles the FastAPI application: logging, CORS, the
versioned routers and, when a build is present, the frontend.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn item_index_api.app.main:app --reload

The item index itself is built in the application's lifespan, not at
import time, and released when the application shuts down.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as v1_router
from .core.config import Settings, settings
from .core.frontend import mount_frontend
from .core.logging_config import setup_logging
from .core.state import build_index

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the ones read from the environment.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  Its index exists
        between lifespan startup and shutdown.
    """
    app_settings = app_settings or settings
    # Initialise logging before anything else so that the index build
    # below is logged with the configured format.
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.item_index = build_index(app_settings)
        try:
            yield
        finally:
            app.state.item_index = None
            logger.info("Item index released")

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.item_index = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount versioned routes under /api/v1.  The browser frontend calls
    # /api/items..., so the same router is also served under /api, hidden
    # from the schema to keep operation ids unique.
    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(v1_router, prefix="/api", include_in_schema=False)

    # Registered last: its catch-all route must not shadow the API.
    mount_frontend(app, app_settings.static_dir)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
