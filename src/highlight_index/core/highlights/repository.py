"""Highlight records: CRUD plus lookups by document and by topic."""

from loguru import logger

from highlight_index.core.database.schema import HIGHLIGHTS
from highlight_index.models.records import Highlight
from highlight_index.protocols import StoreProtocol


class HighlightRepository:
    """Stores highlights as given; page and box rules belong to callers."""

    def __init__(self, store: StoreProtocol) -> None:
        self.store = store

    def add(self, highlight: Highlight) -> None:
        self.store.put(HIGHLIGHTS, highlight.to_dict())
        logger.debug("Saved highlight {} on {} p.{}", highlight.id, highlight.pdf_id, highlight.page)

    # The store has no create/update distinction.
    update = add

    def delete(self, highlight_id: str) -> None:
        self.store.delete(HIGHLIGHTS, highlight_id)

    def get(self, highlight_id: str) -> Highlight | None:
        raw = self.store.get(HIGHLIGHTS, highlight_id)
        return Highlight.from_dict(raw) if raw else None

    def get_all(self) -> list[Highlight]:
        return [Highlight.from_dict(raw) for raw in self.store.get_all(HIGHLIGHTS)]

    def get_by_pdf(self, pdf_id: str) -> list[Highlight]:
        return [Highlight.from_dict(raw) for raw in self.store.get_all_by_index(HIGHLIGHTS, pdf_id)]

    def get_by_topic(self, topic_id: str) -> list[Highlight]:
        """Return highlights whose topic set contains ``topic_id``.

        Full scan over the partition, linear in the number of highlights.
        """
        return [h for h in self.get_all() if topic_id in h.topic_ids]

    def clear_for_pdf(self, pdf_id: str) -> int:
        """Delete every highlight of a document. Returns how many were removed."""
        with self.store.transaction():
            keys = [raw["id"] for raw in self.store.get_all_by_index(HIGHLIGHTS, pdf_id)]
            for key in keys:
                self.store.delete(HIGHLIGHTS, key)
        return len(keys)
