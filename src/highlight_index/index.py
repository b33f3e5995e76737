"""One handle over every component of the index, sharing a single store."""

from dataclasses import dataclass, field
from pathlib import Path

from highlight_index.config import PDF_BASE_URL, PDF_ROOT
from highlight_index.core.database.store import SqliteStore
from highlight_index.core.highlights.bookmarks import BookmarkRepository
from highlight_index.core.highlights.repository import HighlightRepository
from highlight_index.core.registry.pdfs import HttpPathResolver, LocalPathResolver, PdfRegistry
from highlight_index.core.registry.settings import ReadingDirectionSettings
from highlight_index.core.topics.engine import TopicEngine
from highlight_index.protocols import PathResolverProtocol, StoreProtocol


@dataclass
class HighlightIndex:
    store: StoreProtocol
    pdfs: PdfRegistry = field(init=False)
    highlights: HighlightRepository = field(init=False)
    bookmarks: BookmarkRepository = field(init=False)
    topics: TopicEngine = field(init=False)
    reading_direction: ReadingDirectionSettings = field(init=False)

    def __post_init__(self) -> None:
        self.pdfs = PdfRegistry(self.store)
        self.highlights = HighlightRepository(self.store)
        self.bookmarks = BookmarkRepository(self.store)
        self.topics = TopicEngine(self.store, self.highlights)
        self.reading_direction = ReadingDirectionSettings(self.store)


def open_index(db_path: str | Path) -> HighlightIndex:
    """Build an index over the SQLite database at ``db_path`` (opened lazily)."""
    return HighlightIndex(SqliteStore(db_path))


def default_resolver() -> PathResolverProtocol | None:
    """Resolver from PDF_BASE_URL / PDF_ROOT, or None when neither is configured."""
    if PDF_BASE_URL:
        return HttpPathResolver(PDF_BASE_URL)
    if PDF_ROOT:
        return LocalPathResolver(PDF_ROOT)
    return None
