"""
Serving of the built single-page frontend.

If the configured static directory exists, every GET path that no API
route claimed is answered from it.  Unknown paths get ``index.html`` so
that client-side routing works after a reload.  Paths under ``api/`` are
never answered with the page; they 404 like any unknown API route.
"""

import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, status
from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)


def resolve_static_dir(static_dir: str) -> Path:
    """Resolve ``static_dir`` against the project root unless absolute."""
    path = Path(static_dir)
    if path.is_absolute():
        return path
    base_dir = Path(__file__).resolve().parent.parent.parent.parent  # project root
    return (base_dir / path).resolve()


def mount_frontend(app: FastAPI, static_dir: str) -> bool:
    """Register the catch-all route serving ``static_dir``.

    Returns ``False`` (and registers nothing) when the directory is
    missing, in which case the application serves the API only.
    """
    root = resolve_static_dir(static_dir)
    if not root.is_dir():
        logger.info("No frontend build at %s, serving the API only", root)
        return False
    index_file = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        candidate = (root / full_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)
        if index_file.is_file():
            return FileResponse(index_file)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    logger.info("Serving frontend from %s", root)
    return True
