"""
Substring search over decimal item identifiers.

Ids are the integers ``1..upper``, so the ids whose decimal form contains
a digit term can be written down without looking at them: pick where the
term sits inside a number of a given length, then every choice of leading
digits (no leading zero) and trailing digits gives one match.  That makes
two things cheap:

* ``estimate_matches`` counts those choices, an upper bound on the number
  of matches, without enumerating anything;
* ``iter_containing`` enumerates the matching ids, each once.

``OrderedIndex`` uses the estimate to decide how a term is matched.  Rare
terms keep their full candidate set; common terms test ids one by one.
Either way the number of matches per leaf of the order is remembered in a
``TermCounts`` under the leaf's stamp, so after a reorder only the leaves
the move touched are counted again.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple


def is_digit_term(term: str) -> bool:
    """Only ASCII digit terms can occur inside a decimal id."""
    return term.isascii() and term.isdigit()


def _placements(term: str, upper: int) -> Iterator[Tuple[int, int, int, int]]:
    """Yield ``(first_head, last_head, shift, scale)`` for every way ``term``
    can sit inside a number of at most ``len(str(upper))`` digits.

    The numbers of one placement are ``head * shift + int(term) * scale + t``
    for ``first_head <= head < last_head`` and ``0 <= t < scale``.
    """
    width = len(str(upper))
    for length in range(len(term), width + 1):
        free = length - len(term)
        for leading in range(free + 1):
            if leading == 0 and term[0] == "0":
                continue
            trailing = free - leading
            first_head = 10 ** (leading - 1) if leading else 0
            last_head = 10 ** leading if leading else 1
            yield first_head, last_head, 10 ** (len(term) + trailing), 10 ** trailing


def estimate_matches(term: str, upper: int) -> int:
    """Upper bound on how many ids in ``[1, upper]`` contain ``term``.

    Each placement is counted exactly, blocks past ``upper`` left out.
    An id holding the term more than once is counted once per placement.
    """
    if upper < 1 or not is_digit_term(term):
        return 0
    base = int(term)
    total = 0
    for first_head, last_head, shift, scale in _placements(term, upper):
        room = upper - base * scale
        if room < 0:
            continue
        top = min(room // shift, last_head - 1)
        if top < first_head:
            continue
        # whole blocks below the top head, then what fits of the top one
        total += (top - first_head) * scale + min(scale, room - top * shift + 1)
    return min(total, upper)


def iter_containing(term: str, upper: int) -> Iterator[int]:
    """Yield every id in ``[1, upper]`` whose decimal form contains ``term``.

    Ids come out grouped by placement, not sorted.
    """
    if upper < 1 or not is_digit_term(term):
        return
    base = int(term)
    seen = set()
    for first_head, last_head, shift, scale in _placements(term, upper):
        for head in range(first_head, last_head):
            start = head * shift + base * scale
            if start > upper:
                break
            for value in range(start, min(start + scale, upper + 1)):
                if value not in seen:
                    seen.add(value)
                    yield value


@dataclass
class TermCounts:
    """Matches of one term, counted per leaf of the order.

    ``candidates`` holds every matching id when the term is rare enough to
    enumerate; otherwise ids are tested through their decimal form.
    ``counts`` maps a leaf stamp to the number of matches in that leaf.  A
    stamp changes whenever its leaf does, so entries never go stale, they
    only stop being looked up.
    """

    term: str
    candidates: Optional[FrozenSet[int]] = None
    counts: Dict[int, int] = field(default_factory=dict)

    def count_in(self, ids: Iterable[int]) -> int:
        if self.candidates is not None:
            return len(self.candidates.intersection(ids))
        term = self.term
        return sum(1 for item_id in ids if term in str(item_id))

    def offsets_in(self, ids: List[int]) -> List[int]:
        """Return the offsets of the matching ids within ``ids``, ascending."""
        if self.candidates is not None:
            return sorted(map(ids.index, self.candidates.intersection(ids)))
        term = self.term
        return [offset for offset, item_id in enumerate(ids) if term in str(item_id)]


class TermCache:
    """Least recently used cache of :class:`TermCounts` by term."""

    def __init__(self, capacity: int) -> None:
        self._capacity = max(0, capacity)
        self._terms: "OrderedDict[str, TermCounts]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._terms)

    def get(self, term: str) -> Optional[TermCounts]:
        entry = self._terms.get(term)
        if entry is not None:
            self._terms.move_to_end(term)
        return entry

    def put(self, entry: TermCounts) -> None:
        if not self._capacity:
            return
        self._terms[entry.term] = entry
        self._terms.move_to_end(entry.term)
        while len(self._terms) > self._capacity:
            self._terms.popitem(last=False)
