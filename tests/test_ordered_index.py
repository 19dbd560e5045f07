"""
OrderedIndex tests: listing, search, reorder, selection and the
invariants that must hold between them.
"""

import random
import threading

import pytest

from item_index_api.app.core import ordered_index
from item_index_api.app.core.errors import InvalidIndices, InvalidInput
from item_index_api.app.core.ordered_index import OrderedIndex
from item_index_api.app.core.search import TermCounts


def full_order(index: OrderedIndex) -> list:
    return [item.id for item in index.list_items(0, index.total, "").items]


def all_pages(index: OrderedIndex, limit: int, search: str = "") -> list:
    collected = []
    offset = 0
    while True:
        page = index.list_items(offset, limit, search)
        collected.extend(page.items)
        offset += limit
        if not page.has_more:
            return collected


def shuffle_order(index: OrderedIndex, moves: int, seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(moves):
        index.reorder(rng.randrange(index.total), rng.randrange(index.total + 1))


# ═══════════════════════════════════════════════════════════════════
# Listing
# ═══════════════════════════════════════════════════════════════════

class TestListing:

    def test_reorder_then_first_page(self, small_index):
        small_index.reorder(0, 3)
        assert full_order(small_index) == [2, 3, 4, 1, 5]
        page = small_index.list_items(0, 2, "")
        assert [item.id for item in page.items] == [2, 3]
        assert [item.global_index for item in page.items] == [0, 1]
        assert page.has_more is True

    def test_item_fields(self, small_index):
        small_index.set_selected(3, True)
        item = small_index.list_items(2, 1).items[0]
        assert item.id == 3
        assert item.value == 3
        assert item.selected is True
        assert item.global_index == 2

    def test_last_page(self, small_index):
        page = small_index.list_items(3, 10)
        assert [item.id for item in page.items] == [4, 5]
        assert page.has_more is False

    def test_offset_past_the_end(self, small_index):
        page = small_index.list_items(50, 10)
        assert page.items == []
        assert page.has_more is False

    def test_pages_cover_the_order_exactly_once(self, index):
        shuffle_order(index, 200, seed=1)
        expected = full_order(index)
        for limit in (1, 7, 20, 299, 300, 1000):
            items = all_pages(index, limit)
            assert [item.id for item in items] == expected
            assert [item.global_index for item in items] == list(range(300))

    @pytest.mark.parametrize(
        "offset, limit, search",
        [(-1, 10, ""), (0, 0, ""), (0, -5, ""), (0, 10, None), ("0", 10, ""), (0, 2.5, ""), (True, 10, "")],
    )
    def test_bad_arguments(self, small_index, offset, limit, search):
        with pytest.raises(InvalidInput):
            small_index.list_items(offset, limit, search)

    def test_positional_lookups(self, small_index):
        small_index.reorder(4, 0)
        assert small_index.item_at(0) == 5
        assert small_index.position_of(5) == 0
        assert small_index.position_of(1) == 1
        with pytest.raises(InvalidIndices):
            small_index.item_at(5)
        with pytest.raises(InvalidInput):
            small_index.position_of(6)


# ═══════════════════════════════════════════════════════════════════
# Search
# ═══════════════════════════════════════════════════════════════════

class TestSearch:

    @pytest.mark.parametrize("candidate_limit", [0, 10**6])
    @pytest.mark.parametrize("term", ["7", "1", "10", "29", "300", "0", "4444"])
    def test_matches_in_order_for_both_strategies(self, candidate_limit, term):
        index = OrderedIndex(300, leaf_size=4, candidate_limit=candidate_limit)
        shuffle_order(index, 150, seed=7)
        order = full_order(index)
        expected = [item_id for item_id in order if term in str(item_id)]

        page = index.list_items(0, 300, term)
        assert [item.id for item in page.items] == expected
        assert page.has_more is False
        for item in page.items:
            assert item.global_index == order.index(item.id)

    @pytest.mark.parametrize("candidate_limit", [0, 10**6])
    def test_paging_a_search(self, candidate_limit):
        index = OrderedIndex(300, leaf_size=4, candidate_limit=candidate_limit)
        shuffle_order(index, 100, seed=3)
        expected = [item_id for item_id in full_order(index) if "2" in str(item_id)]
        for limit in (1, 5, 13):
            assert [item.id for item in all_pages(index, limit, "2")] == expected

    def test_has_more_on_a_partial_search(self, index):
        page = index.list_items(0, 5, "1")
        assert [item.id for item in page.items] == [1, 10, 11, 12, 13]
        assert page.has_more is True

    def test_non_digit_search_matches_nothing(self, index):
        page = index.list_items(0, 10, "abc")
        assert page.items == []
        assert page.has_more is False

    def test_search_after_reorder_sees_the_new_order(self, index):
        first = index.list_items(0, 3, "1")
        assert [item.id for item in first.items] == [1, 10, 11]
        assert index.stats()["cached_searches"] == 1

        index.reorder(0, 300)  # id 1 to the end
        second = index.list_items(0, 3, "1")
        assert [item.id for item in second.items] == [10, 11, 12]
        assert [item.global_index for item in second.items] == [8, 9, 10]
        last = index.list_items(137, 5, "1")
        assert [item.id for item in last.items] == [1]
        assert last.items[0].global_index == 299
        assert index.stats()["cached_searches"] == 1

    @pytest.mark.parametrize("term", ["1", "29"])
    def test_reorder_recounts_only_touched_leaves(self, index, monkeypatch, term):
        index.list_items(0, 300, term)
        index.reorder(10, 200)
        index.reorder(250, 3)

        calls = []
        count_in = TermCounts.count_in

        def counting(entry, ids):
            calls.append(len(ids))
            return count_in(entry, ids)

        monkeypatch.setattr(TermCounts, "count_in", counting)
        order = full_order(index)
        page = index.list_items(0, 300, term)
        assert [item.id for item in page.items] == [item_id for item_id in order if term in str(item_id)]
        # each move restamps at most four leaves out of 75
        assert 0 < len(calls) <= 8

    def test_common_terms_are_counted_outside_the_lock(self, index, monkeypatch):
        monkeypatch.setattr(ordered_index, "SCAN_CHUNK_LEAVES", 5)
        locked = []
        count_in = TermCounts.count_in

        def counting(entry, ids):
            locked.append(index._lock.locked())
            if len(locked) == 1:
                # the order changes between two chunks
                index.reorder(299, 0)
            return count_in(entry, ids)

        monkeypatch.setattr(TermCounts, "count_in", counting)
        page = index.list_items(20, 20, "3")
        monkeypatch.undo()

        order = full_order(index)
        expected = [item_id for item_id in order if "3" in str(item_id)][20:40]
        assert [item.id for item in page.items] == expected
        assert [item.global_index for item in page.items] == [order.index(item_id) for item_id in expected]
        assert order[0] == 300
        # the final walk recounts the leaves the move touched, under the lock
        assert locked.count(False) > 10
        assert locked.count(True) <= 4

    def test_search_reports_selection(self, index):
        index.set_selected(17, True)
        page = index.list_items(0, 20, "7")
        flags = {item.id: item.selected for item in page.items}
        assert flags[17] is True
        assert flags[7] is False

    def test_full_scale_index(self):
        index = OrderedIndex()
        assert index.total == 1_000_000
        page = index.list_items(0, 20, "7")
        assert [item.id for item in page.items][:3] == [7, 17, 27]
        assert page.has_more is True
        rare = index.list_items(0, 3, "99999")
        assert [item.id for item in rare.items] == [99999, 199999, 299999]

        index.reorder(0, 1_000_000)
        assert index.position_of(1) == 999_999
        assert index.item_at(0) == 2


# ═══════════════════════════════════════════════════════════════════
# Reorder
# ═══════════════════════════════════════════════════════════════════

class TestReorder:

    @pytest.mark.parametrize("source, target", [(-1, 0), (5, 0), (0, 6), (0, -1)])
    def test_out_of_range(self, small_index, source, target):
        with pytest.raises(InvalidIndices):
            small_index.reorder(source, target)
        assert full_order(small_index) == [1, 2, 3, 4, 5]

    @pytest.mark.parametrize("source, target", [(1.0, 2), ("1", 2), (True, 0), (0, False), (None, 1), (0, [3])])
    def test_non_integers(self, small_index, source, target):
        with pytest.raises(InvalidIndices):
            small_index.reorder(source, target)
        assert full_order(small_index) == [1, 2, 3, 4, 5]

    def test_invalid_indices_is_a_value_error(self, small_index):
        with pytest.raises(ValueError):
            small_index.reorder(9, 9)

    def test_append_to_end(self, small_index):
        assert small_index.reorder(0, 5) == 1
        assert full_order(small_index) == [2, 3, 4, 5, 1]

    @pytest.mark.parametrize("source, target", [(2, 2), (4, 5), (0, 0)])
    def test_no_op_moves(self, small_index, source, target):
        small_index.list_items(0, 5, "1")
        small_index.reorder(source, target)
        assert full_order(small_index) == [1, 2, 3, 4, 5]
        # nothing changed, so the cached search survives
        assert small_index.stats()["version"] == 0
        assert small_index.stats()["cached_searches"] == 1

    def test_adjacent_move_swaps(self, small_index):
        small_index.reorder(1, 2)
        assert full_order(small_index) == [1, 3, 2, 4, 5]

    def test_backward_move_shifts_the_gap(self):
        index = OrderedIndex(10, leaf_size=3)
        assert index.reorder(5, 2) == 6
        assert full_order(index) == [1, 2, 6, 3, 4, 5, 7, 8, 9, 10]
        assert index.position_of(6) == 2

    def test_order_stays_a_permutation(self, index):
        shuffle_order(index, 500, seed=11)
        order = full_order(index)
        assert sorted(order) == list(range(1, 301))
        for position in (0, 17, 150, 299):
            assert index.position_of(order[position]) == position


# ═══════════════════════════════════════════════════════════════════
# Selection
# ═══════════════════════════════════════════════════════════════════

class TestSelection:

    def test_round_trip(self, small_index):
        small_index.set_selected(3, True)
        assert 3 in small_index.get_selected()
        small_index.set_selected(3, False)
        assert 3 not in small_index.get_selected()

    def test_idempotent(self, small_index):
        small_index.set_selected(2, True)
        small_index.set_selected(2, True)
        assert small_index.get_selected() == [2]
        small_index.set_selected(4, False)
        assert small_index.get_selected() == [2]

    def test_selection_order_is_kept(self, small_index):
        for item_id in (5, 1, 3):
            small_index.set_selected(item_id, True)
        assert small_index.get_selected() == [5, 1, 3]

    def test_snapshot_is_a_copy(self, small_index):
        small_index.set_selected(1, True)
        snapshot = small_index.get_selected()
        small_index.set_selected(2, True)
        snapshot.append(99)
        assert snapshot == [1, 99]
        assert small_index.get_selected() == [1, 2]

    def test_survives_reorder_and_search(self, small_index):
        small_index.set_selected(1, True)
        small_index.reorder(0, 4)
        assert small_index.list_items(4, 1).items[0].selected is True
        assert small_index.list_items(0, 5, "1").items[0].selected is True

    def test_unknown_ids_are_accepted(self, small_index):
        small_index.set_selected(12345, True)
        assert small_index.get_selected() == [12345]
        assert full_order(small_index) == [1, 2, 3, 4, 5]

    @pytest.mark.parametrize("item_id, selected", [("1", True), (1.5, True), (True, True), (1, 1), (1, "yes"), (1, None)])
    def test_bad_types(self, small_index, item_id, selected):
        with pytest.raises(InvalidInput):
            small_index.set_selected(item_id, selected)
        assert small_index.get_selected() == []


# ═══════════════════════════════════════════════════════════════════
# Concurrency
# ═══════════════════════════════════════════════════════════════════

class TestConcurrency:

    def test_concurrent_readers_and_writers(self, index):
        errors = []

        def writer(seed):
            rng = random.Random(seed)
            try:
                for _ in range(300):
                    index.reorder(rng.randrange(300), rng.randrange(301))
                    index.set_selected(rng.randrange(1, 301), rng.random() < 0.5)
            except Exception as exc:  # pragma: no cover - reported below
                errors.append(exc)

        def reader():
            try:
                for _ in range(100):
                    ids = [item.id for item in index.list_items(0, 300).items]
                    assert sorted(ids) == list(range(1, 301))
                    index.list_items(0, 10, "3")
            except Exception as exc:  # pragma: no cover - reported below
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(seed,)) for seed in range(3)]
        threads += [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(full_order(index)) == list(range(1, 301))
        assert set(index.get_selected()) <= set(range(1, 301))
