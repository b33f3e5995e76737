"""Page bookmarks, indexed by document."""

from highlight_index.core.database.schema import BOOKMARKS
from highlight_index.models.records import Bookmark
from highlight_index.protocols import StoreProtocol


class BookmarkRepository:
    def __init__(self, store: StoreProtocol) -> None:
        self.store = store

    def add(self, bookmark: Bookmark) -> None:
        self.store.put(BOOKMARKS, bookmark.to_dict())

    def get_by_pdf(self, pdf_id: str) -> list[Bookmark]:
        """Bookmarks of one document, ordered by page then creation time."""
        bookmarks = [Bookmark.from_dict(raw) for raw in self.store.get_all_by_index(BOOKMARKS, pdf_id)]
        return sorted(bookmarks, key=lambda b: (b.page, b.created_at))

    def delete(self, bookmark_id: str) -> None:
        self.store.delete(BOOKMARKS, bookmark_id)

    def clear_for_pdf(self, pdf_id: str) -> int:
        with self.store.transaction():
            keys = [raw["id"] for raw in self.store.get_all_by_index(BOOKMARKS, pdf_id)]
            for key in keys:
                self.store.delete(BOOKMARKS, key)
        return len(keys)
