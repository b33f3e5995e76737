"""Per-document reading preferences kept in the ``meta`` partition."""

from highlight_index.core.database.schema import META
from highlight_index.errors import ValidationError
from highlight_index.models.records import ReadingDirection
from highlight_index.protocols import StoreProtocol

READING_DIRECTION_PREFIX = "readingDirection::"
DEFAULT_READING_DIRECTION = ReadingDirection.LTR


def reading_direction_key(pdf_id: str) -> str:
    return f"{READING_DIRECTION_PREFIX}{pdf_id}"


class ReadingDirectionSettings:
    def __init__(self, store: StoreProtocol) -> None:
        self.store = store

    def get(self, pdf_id: str) -> ReadingDirection:
        raw = self.store.get(META, reading_direction_key(pdf_id))
        if raw is None:
            return DEFAULT_READING_DIRECTION
        return ReadingDirection(raw)

    def set(self, pdf_id: str, direction: ReadingDirection | str) -> None:
        try:
            value = ReadingDirection(direction)
        except ValueError:
            msg = f"Unknown reading direction {direction!r}"
            raise ValidationError(msg) from None
        self.store.put(META, value.value, key=reading_direction_key(pdf_id))

    def clear(self, pdf_id: str) -> None:
        self.store.delete(META, reading_direction_key(pdf_id))
