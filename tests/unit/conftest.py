"""Shared test fixtures."""

from collections.abc import Iterator

import pytest

from highlight_index.core.database.store import SqliteStore
from highlight_index.index import HighlightIndex
from tests.unit.fakes import HISTORY_BOOK, PHYSICS_BOOK, make_highlight


@pytest.fixture
def store() -> Iterator[SqliteStore]:
    s = SqliteStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def index(store: SqliteStore) -> HighlightIndex:
    return HighlightIndex(store)


@pytest.fixture
def populated_index(index: HighlightIndex) -> HighlightIndex:
    """Index with two documents, the topic tree Science > Physics > Quantum
    plus a History root, and highlights filed under them.

    h-multi is filed under Quantum and History, h-sole only under Quantum,
    h-physics under Physics, h-none under nothing.
    """
    index.pdfs.add(PHYSICS_BOOK)
    index.pdfs.add(HISTORY_BOOK)
    index.topics.add("Science", topic_id="science")
    index.topics.add("Physics", "science", topic_id="physics")
    index.topics.add("Quantum", "physics", topic_id="quantum")
    index.topics.add("History", topic_id="history")

    index.highlights.add(make_highlight("h-multi", topic_ids=("quantum", "history"), page=2))
    index.highlights.add(make_highlight("h-sole", topic_ids=("quantum",), page=3))
    index.highlights.add(make_highlight("h-physics", topic_ids=("physics",), page=1))
    index.highlights.add(make_highlight("h-none", HISTORY_BOOK.id, page=5))
    return index
