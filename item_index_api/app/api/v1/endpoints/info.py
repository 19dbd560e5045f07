"""
Information endpoint for API v1.

Returns the service name and version together with counters from the
item index.  Useful as a health check: it answers 503 until the index
has been built.
"""

from fastapi import APIRouter, Depends

from item_index_api.app.core.config import Settings
from item_index_api.app.core.ordered_index import OrderedIndex
from item_index_api.app.core.state import get_index, get_settings
from item_index_api.app.schemas.item import IndexInfoRead
from item_index_api.app.services.item_service import ItemService

router = APIRouter()


@router.get("", response_model=IndexInfoRead)
async def get_info(
    index: OrderedIndex = Depends(get_index),
    app_settings: Settings = Depends(get_settings),
) -> IndexInfoRead:
    stats = await ItemService.get_stats(index)
    return IndexInfoRead(
        project_name=app_settings.project_name,
        api_version=app_settings.api_version,
        **stats,
    )
