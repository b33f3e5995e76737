"""Topic hierarchy and highlight index for annotated PDFs."""

from highlight_index.core.database.store import SqliteStore
from highlight_index.core.highlights.bookmarks import BookmarkRepository
from highlight_index.core.highlights.repository import HighlightRepository
from highlight_index.core.registry.pdfs import PdfRegistry
from highlight_index.core.registry.settings import ReadingDirectionSettings
from highlight_index.core.topics.engine import TopicEngine
from highlight_index.index import HighlightIndex, open_index
from highlight_index.protocols import PathResolverProtocol, StoreProtocol

__all__ = [
    "BookmarkRepository",
    "HighlightIndex",
    "HighlightRepository",
    "PathResolverProtocol",
    "PdfRegistry",
    "ReadingDirectionSettings",
    "SqliteStore",
    "StoreProtocol",
    "TopicEngine",
    "open_index",
]
