"""
Business logic for items.

``ItemService`` sits between the HTTP handlers and the
:class:`~item_index_api.app.core.ordered_index.OrderedIndex`: it converts
index results to API schemas and logs every mutation.  The index itself is
passed in by the caller; handlers get it from ``Depends(get_index)``.

Index calls run in the thread pool.  They wait on the index lock, and a
deep first page of a common term counts much of the order; on the event
loop that would stall every other request meanwhile.
"""

import logging
from typing import Any, Dict, List

from fastapi.concurrency import run_in_threadpool

from ..core.ordered_index import OrderedIndex
from ..schemas.item import ItemPageRead, ItemRead

logger = logging.getLogger(__name__)


class ItemService:
    """Service for listing, searching, selecting and reordering items."""

    @classmethod
    async def list_items(
        cls,
        index: OrderedIndex,
        offset: int = 0,
        limit: int = 20,
        search: str = "",
    ) -> ItemPageRead:
        """Return one page of the item list.

        - ``offset`` and ``limit`` select the window.
        - ``search`` keeps only ids whose decimal form contains it; an
          empty string means no filter.

        ``globalIndex`` of each item is its position in the full order,
        which is what ``reorder`` expects.
        """
        page = await run_in_threadpool(index.list_items, offset=offset, limit=limit, search=search)
        return ItemPageRead(
            items=[
                ItemRead(
                    id=item.id,
                    value=item.value,
                    selected=item.selected,
                    global_index=item.global_index,
                )
                for item in page.items
            ],
            has_more=page.has_more,
        )

    @classmethod
    async def get_selected(cls, index: OrderedIndex) -> List[int]:
        return await run_in_threadpool(index.get_selected)

    @classmethod
    async def set_selected(cls, index: OrderedIndex, item_id: int, selected: bool) -> None:
        """Select or deselect an item.

        Unknown ids are accepted as they are; the selection only records
        what the client sent.
        """
        await run_in_threadpool(index.set_selected, item_id, selected)
        logger.info("Item %s %s", item_id, "selected" if selected else "deselected")

    @classmethod
    async def reorder(cls, index: OrderedIndex, source: Any, target: Any) -> int:
        """Move the item at position ``source`` to position ``target``.

        Raises ``InvalidIndices`` when the positions are invalid; the
        order is unchanged in that case.
        """
        item_id = await run_in_threadpool(index.reorder, source, target)
        logger.info("Item %s moved from position %s to %s", item_id, source, target)
        return item_id

    @classmethod
    async def get_stats(cls, index: OrderedIndex) -> Dict[str, int]:
        return await run_in_threadpool(index.stats)
