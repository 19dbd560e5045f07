"""
Lifecycle of the item index and FastAPI dependencies to reach it.

The index is built once when the application starts (see the lifespan in
``main.py``), kept on ``app.state`` and released at shutdown.  Route
handlers never import it; they declare ``Depends(get_index)`` instead, so
each application instance (tests build many) has its own index.
"""

import logging
import time

from fastapi import HTTPException, Request, status

from .config import Settings
from .ordered_index import OrderedIndex

logger = logging.getLogger(__name__)


def build_index(app_settings: Settings) -> OrderedIndex:
    """Create the index described by ``app_settings``."""
    started = time.perf_counter()
    index = OrderedIndex.from_settings(app_settings)
    logger.info("Item index ready in %.2fs", time.perf_counter() - started)
    return index


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_index(request: Request) -> OrderedIndex:
    """Return the index of the application serving ``request``.

    Responds with 503 when the application has not started yet or is
    shutting down.
    """
    index = getattr(request.app.state, "item_index", None)
    if index is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Item index is not initialised",
        )
    return index
