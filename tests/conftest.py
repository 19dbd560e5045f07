"""Shared fixtures.

Indexes used by the tests are small and use tiny leaves so that leaf
splits and merges happen after a handful of moves.  Applications are
built from explicit ``Settings`` and entered as context managers so that
their lifespan (which builds the index) runs.
"""

import pytest
from fastapi.testclient import TestClient

from item_index_api.app.core.config import Settings
from item_index_api.app.core.ordered_index import OrderedIndex
from item_index_api.app.main import create_app


@pytest.fixture
def small_index():
    return OrderedIndex(5)


@pytest.fixture
def index():
    return OrderedIndex(300, leaf_size=4, candidate_limit=50, cache_size=4)


@pytest.fixture
def make_settings(tmp_path):
    def factory(**overrides) -> Settings:
        values = dict(
            total_items=120,
            page_size=10,
            max_page_size=50,
            leaf_size=4,
            search_candidate_limit=20,
            search_cache_size=4,
            static_dir=str(tmp_path / "no-frontend"),
        )
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def client(make_settings):
    with TestClient(create_app(make_settings())) as test_client:
        yield test_client
