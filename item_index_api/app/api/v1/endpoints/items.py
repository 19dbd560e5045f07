"""
Item endpoints for API v1.

These routes are the HTTP face of the item index: paginated and
searchable listing, the selection, and reordering.  Paths are defined
here in full (``/items``, ``/items/selected`` ...) and the router is
included without a prefix.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from item_index_api.app.core.config import Settings
from item_index_api.app.core.errors import InvalidIndices, InvalidInput
from item_index_api.app.core.ordered_index import OrderedIndex
from item_index_api.app.core.state import get_index, get_settings
from item_index_api.app.schemas.item import (
    ItemPageRead,
    ReorderRequest,
    SelectedRead,
    SelectRequest,
    StatusRead,
)
from item_index_api.app.services.item_service import ItemService

router = APIRouter()


@router.get("/items", response_model=ItemPageRead)
async def list_items(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, description="Page size; defaults to the configured page size"),
    search: str = Query("", description="Keep only items whose id contains this text"),
    index: OrderedIndex = Depends(get_index),
    app_settings: Settings = Depends(get_settings),
) -> ItemPageRead:
    """Return a page of items.

    - **offset**, **limit**: window into the (filtered) list.
    - **search**: substring of the item id; empty means all items.

    Each item carries ``globalIndex``, its position in the full,
    unfiltered order.  ``hasMore`` is true while items follow the page.
    """
    if limit is None:
        limit = app_settings.page_size
    if limit > app_settings.max_page_size:
        raise HTTPException(
            status_code=422,
            detail=f"limit must not exceed {app_settings.max_page_size}",
        )
    try:
        return await ItemService.list_items(index, offset=offset, limit=limit, search=search)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.get("/items/selected", response_model=SelectedRead)
async def get_selected(index: OrderedIndex = Depends(get_index)) -> SelectedRead:
    """Return every selected item id, in the order they were selected."""
    return SelectedRead(selected=await ItemService.get_selected(index))


@router.post("/items/select", response_model=StatusRead)
async def select_item(
    payload: SelectRequest,
    index: OrderedIndex = Depends(get_index),
) -> StatusRead:
    """Select or deselect one item.  Repeating a request changes nothing."""
    try:
        await ItemService.set_selected(index, payload.id, payload.selected)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return StatusRead()


@router.post("/items/reorder", response_model=StatusRead)
async def reorder_items(
    payload: ReorderRequest,
    index: OrderedIndex = Depends(get_index),
) -> StatusRead:
    """Move the item at position ``from`` to position ``to``.

    Both positions refer to the full order (``globalIndex``), never to a
    filtered view.  Returns 400 when either is out of range or not an
    integer; the order is left unchanged.
    """
    try:
        await ItemService.reorder(index, payload.source, payload.target)
    except InvalidIndices as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return StatusRead()
