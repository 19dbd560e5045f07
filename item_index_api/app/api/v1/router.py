"""
Top-level router for version 1 of the API.

When new endpoints are added, include their routers here.
"""

from fastapi import APIRouter

from .endpoints import info, items

router = APIRouter()

# The items router defines its own "/items..." paths internally, so it is
# included without a prefix.
router.include_router(items.router, tags=["items"])
router.include_router(info.router, prefix="/info", tags=["info"])
