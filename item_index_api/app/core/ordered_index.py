"""
The item index: a total order over item ids plus a selection set.

``OrderedIndex`` is the only stateful object in the service.  It owns

* the order, a permutation of the ids ``1..total`` held in a
  :class:`~item_index_api.app.core.position_index.PositionIndex`, and
* the selection, the ids currently marked selected.

Every public method takes the instance lock while it reads or changes the
order, so a page read never sees a half-applied move.  Nothing under the
lock blocks on I/O.

Search
------
``list_items`` with a non-empty term returns the subsequence of the order
whose ids contain the term.  Per term, a
:class:`~item_index_api.app.core.search.TermCounts` remembers how many
matches each leaf of the order holds, keyed by the leaf's stamp.  A page is
found by walking the leaf counts to the leaf holding match ``offset`` and
reading matches from there.

How a leaf is counted depends on
:func:`~item_index_api.app.core.search.estimate_matches`:

* at most ``candidate_limit`` estimated matches: the matching ids are
  enumerated once and every leaf is counted by intersecting with them.
  The first count costs the number of candidates, not ``total``.
* more: ids are tested one by one.  Leaves not counted yet are copied
  ``SCAN_CHUNK_LEAVES`` at a time under the lock and counted outside it,
  so a first deep page of a common term never holds the lock for the
  whole order.

A reorder restamps the few leaves it touches; only those are counted again
for the next page.  Lock time of a search page is O(L) for the walk plus
O(B) per leaf the page's matches lie in, with L leaves of size B.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import InvalidIndices, InvalidInput
from .position_index import DEFAULT_LEAF_SIZE, PositionIndex
from .search import TermCache, TermCounts, estimate_matches, is_digit_term, iter_containing

logger = logging.getLogger(__name__)

DEFAULT_TOTAL = 1_000_000
DEFAULT_CANDIDATE_LIMIT = 20_000
DEFAULT_CACHE_SIZE = 16
# Leaves copied per lock hold while a term's counts are filled in.
SCAN_CHUNK_LEAVES = 64


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class IndexedItem:
    """One entry of a page: an id and where it sits in the full order."""

    id: int
    value: int
    selected: bool
    global_index: int


@dataclass(frozen=True)
class ItemPage:
    items: List[IndexedItem]
    has_more: bool


class OrderedIndex:
    """Ordered, searchable, selectable collection of the ids ``1..total``."""

    def __init__(
        self,
        total: int = DEFAULT_TOTAL,
        *,
        leaf_size: int = DEFAULT_LEAF_SIZE,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ) -> None:
        if not _is_int(total) or total < 0:
            raise InvalidInput("total must be a non-negative integer")
        self._total = total
        self._order = PositionIndex(range(1, total + 1), leaf_size=leaf_size)
        # dict rather than set: keeps the ids in the order they were selected
        self._selected: Dict[int, None] = {}
        self._candidate_limit = candidate_limit
        self._terms = TermCache(cache_size)
        self._version = 0
        self._lock = threading.Lock()
        logger.info(
            "Built item index with %s items in %s leaves",
            total,
            self._order.leaf_count,
        )

    @classmethod
    def from_settings(cls, app_settings) -> "OrderedIndex":
        return cls(
            app_settings.total_items,
            leaf_size=app_settings.leaf_size,
            candidate_limit=app_settings.search_candidate_limit,
            cache_size=app_settings.search_cache_size,
        )

    @property
    def total(self) -> int:
        return self._total

    def __len__(self) -> int:
        return self._total

    # ------------------------------------------------------------------
    # Positional access
    # ------------------------------------------------------------------
    def item_at(self, position: int) -> int:
        """Return the id at ``position`` of the full order."""
        if not _is_int(position):
            raise InvalidInput("position must be an integer")
        with self._lock:
            try:
                return self._order[position]
            except IndexError:
                raise InvalidIndices(position) from None

    def position_of(self, item_id: int) -> int:
        """Return the global index of ``item_id``."""
        if not _is_int(item_id):
            raise InvalidInput("item id must be an integer")
        with self._lock:
            try:
                return self._order.index(item_id)
            except ValueError:
                raise InvalidInput(f"unknown item {item_id}") from None

    # ------------------------------------------------------------------
    # Listing and search
    # ------------------------------------------------------------------
    def list_items(self, offset: int = 0, limit: int = 20, search: str = "") -> ItemPage:
        """Return the page of the (optionally filtered) order at ``offset``.

        ``has_more`` tells whether anything matches after the page.
        """
        if not _is_int(offset) or offset < 0:
            raise InvalidInput("offset must be a non-negative integer")
        if not _is_int(limit) or limit <= 0:
            raise InvalidInput("limit must be a positive integer")
        if not isinstance(search, str):
            raise InvalidInput("search must be a string")

        if not search:
            with self._lock:
                return self._window(offset, limit)
        if not is_digit_term(search):
            return ItemPage(items=[], has_more=False)
        entry = self._term_counts(search)
        self._fill_counts(entry, offset + limit + 1)
        with self._lock:
            return self._search_window(entry, offset, limit)

    def _view(self, item_id: int, position: int) -> IndexedItem:
        return IndexedItem(
            id=item_id,
            value=item_id,
            selected=item_id in self._selected,
            global_index=position,
        )

    def _window(self, offset: int, limit: int) -> ItemPage:
        ids = self._order.slice(offset, offset + limit)
        items = [self._view(item_id, offset + shift) for shift, item_id in enumerate(ids)]
        return ItemPage(items=items, has_more=offset + len(items) < len(self._order))

    def _term_counts(self, term: str) -> TermCounts:
        with self._lock:
            entry = self._terms.get(term)
        if entry is not None:
            return entry

        entry = TermCounts(term=term)
        estimate = estimate_matches(term, self._total)
        if estimate <= self._candidate_limit:
            entry.candidates = frozenset(iter_containing(term, self._total))
            with self._lock:
                per_leaf = Counter(map(self._order.stamp_of, entry.candidates))
                for stamp, _ in self._order.iter_leaves():
                    entry.counts[stamp] = per_leaf[stamp]
            logger.debug("Search %r: %s candidates counted per leaf", term, len(entry.candidates))
        else:
            logger.debug("Search %r: about %s matches, testing ids", term, estimate)
        with self._lock:
            self._terms.put(entry)
        return entry

    def _fill_counts(self, entry: TermCounts, wanted: int) -> None:
        """Count leaves from the front until ``wanted`` matches are known.

        Only copying a chunk of leaves happens under the lock; counting
        them does not.  The order may change between chunks, which only
        leaves some counts for the final walk to redo.
        """
        matched = 0
        slot = 0
        while matched < wanted:
            pending = []
            with self._lock:
                chunk = list(self._order.iter_leaves(slot, slot + SCAN_CHUNK_LEAVES))
                for stamp, ids in chunk:
                    known = entry.counts.get(stamp)
                    if known is None:
                        pending.append((stamp, list(ids)))
                    else:
                        matched += known
            if not chunk:
                return
            slot += len(chunk)
            if not pending:
                continue
            found = {stamp: entry.count_in(ids) for stamp, ids in pending}
            matched += sum(found.values())
            with self._lock:
                entry.counts.update(found)

    def _search_window(self, entry: TermCounts, offset: int, limit: int) -> ItemPage:
        counts = entry.counts
        if len(counts) > 2 * self._order.leaf_count + SCAN_CHUNK_LEAVES:
            live = {stamp for stamp, _ in self._order.iter_leaves()}
            counts = entry.counts = {stamp: found for stamp, found in counts.items() if stamp in live}

        end = offset + limit
        matched = 0
        position = 0
        items = []
        for stamp, ids in self._order.iter_leaves():
            found = counts.get(stamp)
            if found is None:
                found = counts[stamp] = entry.count_in(ids)
            if not found or matched + found <= offset:
                matched += found
            elif matched >= end:
                return ItemPage(items=items, has_more=True)
            else:
                for shift in entry.offsets_in(ids):
                    if matched >= end:
                        return ItemPage(items=items, has_more=True)
                    if matched >= offset:
                        items.append(self._view(ids[shift], position + shift))
                    matched += 1
            position += len(ids)
        return ItemPage(items=items, has_more=False)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def reorder(self, source: Any, target: Any) -> int:
        """Move the id at position ``source`` to position ``target``.

        Positions refer to the full order.  The id is removed first and
        ``target`` is read against the shortened order, like a list splice;
        ``target == len(self)`` moves the id to the end.  Returns the moved
        id.  Raises :class:`InvalidIndices` and leaves the order untouched
        when either position is not an integer or out of range.
        """
        with self._lock:
            size = len(self._order)
            valid = (
                _is_int(source)
                and _is_int(target)
                and 0 <= source < size
                and 0 <= target <= size
            )
            if valid:
                if min(target, size - 1) == source:
                    return self._order[source]
                item_id = self._order.move(source, target)
                self._version += 1
        if not valid:
            logger.warning("Rejected reorder from %r to %r", source, target)
            raise InvalidIndices(source, target)
        logger.debug("Moved item %s from position %s to %s", item_id, source, target)
        return item_id

    def set_selected(self, item_id: Any, selected: Any) -> None:
        """Mark ``item_id`` selected or not.  Idempotent.

        Ids are not checked against the order.
        """
        if not _is_int(item_id):
            raise InvalidInput("item id must be an integer")
        if not isinstance(selected, bool):
            raise InvalidInput("selected must be a boolean")
        with self._lock:
            if selected:
                self._selected.setdefault(item_id, None)
            else:
                self._selected.pop(item_id, None)

    def get_selected(self) -> List[int]:
        """Return a copy of the selected ids, oldest selection first."""
        with self._lock:
            return list(self._selected)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "total": len(self._order),
                "selected": len(self._selected),
                "leaves": self._order.leaf_count,
                "version": self._version,
                "cached_searches": len(self._terms),
            }
