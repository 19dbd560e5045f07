"""
Order-statistics sequence for item identifiers.

``PositionIndex`` stores a sequence of unique integer ids and answers the
two questions the item list keeps asking, "which id is at position k" and
"at which position is id x", without walking the whole sequence.

Layout:
  - Ids live in leaves, plain Python lists of roughly ``leaf_size`` ids,
    kept in sequence order.
  - A Fenwick tree over the leaf sizes gives the number of ids before any
    leaf in O(log L) and finds the leaf holding position k in O(log L),
    where L is the number of leaves.
  - A dict maps every id to the leaf that owns it.

Costs, with B the leaf size:
  - ``seq[k]``                 O(log L)
  - ``seq.index(x)``           O(log L + B)  (``list.index`` inside one leaf)
  - ``insert`` / ``pop``       O(log L + B)
  - split / merge of a leaf    O(B + L)      (renumbers leaves, rebuilds counts)

Leaves split once they hold more than ``2 * leaf_size`` ids and merge into
a neighbour once they drop below ``leaf_size // 2`` and the pair fits in
``leaf_size + leaf_size // 2``.  Empty leaves are dropped.  The gap between
the split and merge thresholds keeps a leaf from flapping between the two.

Every leaf carries a stamp, unique within the index and replaced each time
the leaf's contents change.  Anything derived from a leaf can be cached
under its stamp: a move restamps or creates at most four leaves (source,
target, a merge partner and a split sibling), all others keep theirs.

Not thread safe; callers serialise access.
"""

from itertools import count, islice
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

DEFAULT_LEAF_SIZE = 1024


class _Leaf:
    __slots__ = ("ids", "slot", "stamp")

    def __init__(self, ids: List[int], slot: int, stamp: int) -> None:
        self.ids = ids
        self.slot = slot
        self.stamp = stamp


class PositionIndex:
    """Sequence of unique ids with sub-linear positional access."""

    def __init__(self, ids: Iterable[int] = (), leaf_size: int = DEFAULT_LEAF_SIZE) -> None:
        if leaf_size < 2:
            raise ValueError("leaf_size must be at least 2")
        self._leaf_size = leaf_size
        self._leaves: List[_Leaf] = []
        self._owner: Dict[int, _Leaf] = {}
        self._counts: List[int] = [0]
        self._top_bit = 0
        self._clock = count()

        ids = list(ids)
        for start in range(0, len(ids), leaf_size):
            leaf = _Leaf(ids[start:start + leaf_size], len(self._leaves), next(self._clock))
            self._leaves.append(leaf)
            self._owner.update(dict.fromkeys(leaf.ids, leaf))
        if len(self._owner) != len(ids):
            raise ValueError("identifiers must be unique")
        self._size = len(ids)
        self._rebuild()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def leaf_size(self) -> int:
        return self._leaf_size

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._owner

    def __iter__(self) -> Iterator[int]:
        return self.iter_from(0)

    def __getitem__(self, position: int) -> int:
        self._check_position(position)
        slot, offset = self._locate(position)
        return self._leaves[slot].ids[offset]

    def index(self, item_id: int) -> int:
        """Return the position of ``item_id``; ``ValueError`` if absent."""
        try:
            leaf = self._owner[item_id]
        except KeyError:
            raise ValueError(f"{item_id!r} is not in the index") from None
        return self._count_before(leaf.slot) + leaf.ids.index(item_id)

    def iter_from(self, start: int = 0) -> Iterator[int]:
        """Yield ids from position ``start`` to the end of the sequence.

        The generator reads the live leaves, so it must be consumed before
        the sequence is modified.
        """
        if start < 0:
            raise IndexError("position out of range")
        if start >= self._size:
            return
        slot, offset = self._locate(start)
        leaves = self._leaves
        yield from leaves[slot].ids[offset:]
        for index in range(slot + 1, len(leaves)):
            yield from leaves[index].ids

    def slice(self, start: int, stop: int) -> List[int]:
        """Return the ids at positions ``[start, stop)`` as a new list."""
        if stop <= start or start >= self._size:
            return []
        return list(islice(self.iter_from(start), stop - start))

    def iter_leaves(self, start_slot: int = 0, stop_slot: Optional[int] = None) -> Iterator[Tuple[int, List[int]]]:
        """Yield ``(stamp, ids)`` for the leaves in ``[start_slot, stop_slot)``.

        ``ids`` is the leaf's own list: read it, never change it, and stop
        iterating before the sequence is modified.
        """
        for leaf in self._leaves[start_slot:stop_slot]:
            yield leaf.stamp, leaf.ids

    def stamp_of(self, item_id: int) -> int:
        """Return the stamp of the leaf holding ``item_id``."""
        try:
            return self._owner[item_id].stamp
        except KeyError:
            raise ValueError(f"{item_id!r} is not in the index") from None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def insert(self, position: int, item_id: int) -> None:
        """Insert ``item_id`` before ``position``.

        Like ``list.insert``, positions at or past the end append.
        """
        if position < 0:
            raise IndexError("position out of range")
        if item_id in self._owner:
            raise ValueError(f"{item_id!r} is already in the index")
        if not self._leaves:
            self._leaves.append(_Leaf([], 0, next(self._clock)))
            self._rebuild()
        if position >= self._size:
            leaf = self._leaves[-1]
            offset = len(leaf.ids)
        else:
            slot, offset = self._locate(position)
            leaf = self._leaves[slot]
        leaf.ids.insert(offset, item_id)
        leaf.stamp = next(self._clock)
        self._owner[item_id] = leaf
        self._size += 1
        self._add(leaf.slot, 1)
        if len(leaf.ids) > 2 * self._leaf_size:
            self._split(leaf)

    def pop(self, position: int) -> int:
        """Remove and return the id at ``position``."""
        self._check_position(position)
        slot, offset = self._locate(position)
        leaf = self._leaves[slot]
        item_id = leaf.ids.pop(offset)
        leaf.stamp = next(self._clock)
        del self._owner[item_id]
        self._size -= 1
        self._add(slot, -1)
        self._shrink(leaf)
        return item_id

    def move(self, source: int, target: int) -> int:
        """Move the id at ``source`` so that it ends up at ``target``.

        Splice semantics: the id is removed first and ``target`` is read
        against the shortened sequence, so ``target == len(self)`` appends.
        Returns the moved id.
        """
        self._check_position(source)
        if not 0 <= target <= self._size:
            raise IndexError("position out of range")
        item_id = self.pop(source)
        self.insert(target, item_id)
        return item_id

    # ------------------------------------------------------------------
    # Leaf bookkeeping
    # ------------------------------------------------------------------
    def _check_position(self, position: int) -> None:
        if not 0 <= position < self._size:
            raise IndexError("position out of range")

    def _rebuild(self) -> None:
        leaves = self._leaves
        counts = [0] * (len(leaves) + 1)
        for slot, leaf in enumerate(leaves):
            leaf.slot = slot
            node = slot + 1
            counts[node] += len(leaf.ids)
            parent = node + (node & -node)
            if parent < len(counts):
                counts[parent] += counts[node]
        self._counts = counts
        self._top_bit = 1 << (len(leaves).bit_length() - 1) if leaves else 0

    def _add(self, slot: int, delta: int) -> None:
        counts = self._counts
        node = slot + 1
        while node < len(counts):
            counts[node] += delta
            node += node & -node

    def _count_before(self, slot: int) -> int:
        counts = self._counts
        total = 0
        node = slot
        while node > 0:
            total += counts[node]
            node -= node & -node
        return total

    def _locate(self, position: int) -> Tuple[int, int]:
        # Largest prefix of whole leaves whose total size is <= position.
        counts = self._counts
        slot = 0
        step = self._top_bit
        while step:
            ahead = slot + step
            if ahead < len(counts) and counts[ahead] <= position:
                slot = ahead
                position -= counts[ahead]
            step >>= 1
        return slot, position

    def _split(self, leaf: _Leaf) -> None:
        half = len(leaf.ids) // 2
        sibling = _Leaf(leaf.ids[half:], leaf.slot + 1, next(self._clock))
        del leaf.ids[half:]
        leaf.stamp = next(self._clock)
        self._owner.update(dict.fromkeys(sibling.ids, sibling))
        self._leaves.insert(leaf.slot + 1, sibling)
        self._rebuild()

    def _shrink(self, leaf: _Leaf) -> None:
        if not leaf.ids:
            del self._leaves[leaf.slot]
            self._rebuild()
            return
        if len(leaf.ids) >= self._leaf_size // 2:
            return
        neighbour = self._mergeable_neighbour(leaf)
        if neighbour is None:
            return
        left, right = (neighbour, leaf) if neighbour.slot < leaf.slot else (leaf, neighbour)
        left.ids.extend(right.ids)
        left.stamp = next(self._clock)
        self._owner.update(dict.fromkeys(right.ids, left))
        del self._leaves[right.slot]
        self._rebuild()

    def _mergeable_neighbour(self, leaf: _Leaf) -> Optional[_Leaf]:
        limit = self._leaf_size + self._leaf_size // 2
        for slot in (leaf.slot - 1, leaf.slot + 1):
            if 0 <= slot < len(self._leaves):
                candidate = self._leaves[slot]
                if len(candidate.ids) + len(leaf.ids) <= limit:
                    return candidate
        return None
