"""Domain records for the highlight index.

Records are frozen; edits go through ``dataclasses.replace``. ``to_dict`` and
``from_dict`` use the camelCase keys of the stored / backup representation.
"""

import time
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from highlight_index.config import MIN_BOX_SIZE
from highlight_index.errors import ValidationError


def now_ms() -> int:
    return int(time.time() * 1000)


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    try:
        return data[key]
    except KeyError:
        msg = f"{kind} record is missing required field {key!r}"
        raise ValidationError(msg) from None
    except TypeError:
        msg = f"{kind} record must be an object, got {type(data).__name__}"
        raise ValidationError(msg) from None


class ReadingDirection(StrEnum):
    LTR = "ltr"
    RTL = "rtl"


@dataclass(frozen=True)
class Document:
    """A registered PDF source."""

    id: str
    title: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        return cls(
            id=_require(data, "id", "Document"),
            title=_require(data, "title", "Document"),
            path=_require(data, "path", "Document"),
        )


@dataclass(frozen=True)
class Topic:
    """A named node in the topic forest. ``parent_id`` None means root."""

    id: str
    name: str
    parent_id: str | None = None

    @classmethod
    def create(cls, name: str, parent_id: str | None = None) -> "Topic":
        return cls(id=f"topic-{uuid.uuid4()}", name=name, parent_id=parent_id)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "parentId": self.parent_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Topic":
        return cls(
            id=_require(data, "id", "Topic"),
            name=_require(data, "name", "Topic"),
            parent_id=data.get("parentId") or None,
        )


_HIGHLIGHT_OPTIONAL_TEXT = ("book", "volume", "chapter", "description")


@dataclass(frozen=True)
class Highlight:
    """A rectangular annotation on one page of one document.

    Coordinates are page-local pixels at the canonical unscaled page width.
    Optional provenance fields left as None are omitted from the stored form.
    """

    id: str
    pdf_id: str
    page: int
    top: float
    left: float
    width: float
    height: float
    created_at: int
    topic_ids: tuple[str, ...] = ()
    book: str | None = None
    volume: str | None = None
    chapter: str | None = None
    tags: tuple[str, ...] | None = None
    description: str | None = None

    @classmethod
    def create(
        cls,
        *,
        pdf_id: str,
        page: int,
        top: float,
        left: float,
        width: float,
        height: float,
        topic_ids: tuple[str, ...] | list[str] = (),
        book: str | None = None,
        volume: str | None = None,
        chapter: str | None = None,
        tags: tuple[str, ...] | list[str] = (),
        description: str | None = None,
    ) -> "Highlight":
        """Build a new highlight with a fresh id and creation timestamp."""
        return cls(
            id=f"box-{uuid.uuid4().hex}",
            pdf_id=pdf_id,
            page=page,
            top=top,
            left=left,
            width=width,
            height=height,
            created_at=now_ms(),
            topic_ids=tuple(dict.fromkeys(topic_ids)),
            book=book,
            volume=volume,
            chapter=chapter,
            tags=tuple(tags),
            description=description,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "pdfId": self.pdf_id,
            "page": self.page,
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
            "topicIds": list(self.topic_ids),
        }
        for key in _HIGHLIGHT_OPTIONAL_TEXT:
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.tags is not None:
            data["tags"] = list(self.tags)
        data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Highlight":
        tags = data.get("tags") if isinstance(data, dict) else None
        return cls(
            id=_require(data, "id", "Highlight"),
            pdf_id=_require(data, "pdfId", "Highlight"),
            page=_require(data, "page", "Highlight"),
            top=_require(data, "top", "Highlight"),
            left=_require(data, "left", "Highlight"),
            width=_require(data, "width", "Highlight"),
            height=_require(data, "height", "Highlight"),
            created_at=_require(data, "createdAt", "Highlight"),
            topic_ids=tuple(data.get("topicIds") or ()),
            book=data.get("book"),
            volume=data.get("volume"),
            chapter=data.get("chapter"),
            tags=tuple(tags) if tags is not None else None,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Bookmark:
    """A titled page marker inside one document."""

    id: str
    pdf_id: str
    page: int
    title: str
    created_at: int

    @classmethod
    def create(cls, *, pdf_id: str, page: int, title: str) -> "Bookmark":
        return cls(
            id=f"bookmark-{uuid.uuid4().hex}",
            pdf_id=pdf_id,
            page=page,
            title=title,
            created_at=now_ms(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pdfId": self.pdf_id,
            "page": self.page,
            "title": self.title,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bookmark":
        return cls(
            id=_require(data, "id", "Bookmark"),
            pdf_id=_require(data, "pdfId", "Bookmark"),
            page=_require(data, "page", "Bookmark"),
            title=data.get("title", ""),
            created_at=_require(data, "createdAt", "Bookmark"),
        )


@dataclass(frozen=True)
class Backup:
    """A full snapshot of documents, highlights, topics and the last-opened pointer."""

    pdfs: tuple[Document, ...] = ()
    last_pdf_id: str | None = None
    highlights: tuple[Highlight, ...] = ()
    topics: tuple[Topic, ...] = ()


@dataclass(frozen=True)
class DeleteImpact:
    """What deleting a topic would do (or did)."""

    has_children: bool
    children_count: int
    highlights_affected_multi_topic: int
    highlights_affected_sole_topic: int


@dataclass(frozen=True)
class GraphNode:
    id: str
    name: str
    parent_id: str | None


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str


@dataclass(frozen=True)
class TopicGraph:
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]


@dataclass(frozen=True)
class PositionedTopic:
    """A topic with its canvas coordinates in the tree view."""

    topic: Topic
    x: float
    y: float


def parse_tags(raw: str) -> list[str]:
    """Split a comma separated tag string, dropping blanks."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def is_drawable_box(width: float, height: float) -> bool:
    """Return True when a drafted box is large enough to become a highlight."""
    return width > MIN_BOX_SIZE and height > MIN_BOX_SIZE
