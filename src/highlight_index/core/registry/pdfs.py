"""Registry of PDF documents and the last-opened pointer."""

import re
import uuid
from pathlib import Path
from urllib.parse import quote, unquote

import requests
from loguru import logger

from highlight_index.config import RESOLVE_TIMEOUT
from highlight_index.core.database.schema import META, PDFS
from highlight_index.core.highlights.bookmarks import BookmarkRepository
from highlight_index.core.highlights.repository import HighlightRepository
from highlight_index.core.registry.settings import reading_direction_key
from highlight_index.errors import ValidationError
from highlight_index.models.records import Document, now_ms
from highlight_index.protocols import PathResolverProtocol, StoreProtocol

LAST_PDF_KEY = "lastPdfId"

# Characters encodeURI leaves alone.
_URI_SAFE = "/;,?:@&=+$-_.!~*'()#"

# Escapes of reserved characters survive decoding, as with decodeURI.
_RESERVED_ESCAPE = re.compile(r"(%(?:2[346BCF]|3[ABDF]|40))", re.IGNORECASE)


def normalize_path(path: str) -> str:
    """Return the escaped-once form of a document path.

    The path must be absolute ("/books/a.pdf"). Already-escaped input is
    decoded first so "/my%20book.pdf" and "/my book.pdf" normalise alike.
    Escaped reserved characters such as "%23" or "%2F" stay escaped.
    """
    sanitized = path.strip()
    if not sanitized.startswith("/"):
        msg = f"Path must start with '/' (e.g. /data/book.pdf), got {path!r}"
        raise ValidationError(msg)
    parts = _RESERVED_ESCAPE.split(sanitized)
    return "".join(
        part if _RESERVED_ESCAPE.fullmatch(part) else quote(unquote(part), safe=_URI_SAFE)
        for part in parts
    )


class LocalPathResolver:
    """Resolve document paths against a directory on disk."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def is_resolvable(self, path: str) -> bool:
        root = self.root.resolve()
        candidate = (root / unquote(path).lstrip("/")).resolve()
        if not candidate.is_relative_to(root):
            logger.warning("Path {} escapes document root {}", path, root)
            return False
        return candidate.is_file() and candidate.suffix.lower() == ".pdf"


class HttpPathResolver:
    """Resolve document paths against a web server with HEAD requests."""

    def __init__(self, base_url: str, *, timeout: float = RESOLVE_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.sess = requests.Session()

    def is_resolvable(self, path: str) -> bool:
        url = f"{self.base_url}{path}"
        try:
            r = self.sess.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException:
            logger.warning("HEAD {} failed, treating document as unresolvable", url, exc_info=True)
            return False
        content_type = r.headers.get("content-type", "")
        return r.ok and "pdf" in content_type


class PdfRegistry:
    """CRUD over document records plus the last-opened pointer."""

    def __init__(self, store: StoreProtocol) -> None:
        self.store = store

    def add(self, document: Document) -> None:
        self.store.put(PDFS, document.to_dict())
        logger.debug("Registered document {} ({})", document.id, document.path)

    def get(self, pdf_id: str) -> Document | None:
        raw = self.store.get(PDFS, pdf_id)
        return Document.from_dict(raw) if raw else None

    def get_all(self) -> list[Document]:
        return [Document.from_dict(raw) for raw in self.store.get_all(PDFS)]

    def find_by_path(self, path: str) -> Document | None:
        """Return the first document whose stored path equals ``path`` exactly."""
        return next((doc for doc in self.get_all() if doc.path == path), None)

    def remove(self, pdf_id: str) -> None:
        """Remove a document together with everything that points at it.

        Highlights, bookmarks and the reading-direction preference of the
        document are deleted; the last-opened pointer is cleared when it
        referenced the document. Runs as one transaction.
        """
        with self.store.transaction():
            removed = HighlightRepository(self.store).clear_for_pdf(pdf_id)
            BookmarkRepository(self.store).clear_for_pdf(pdf_id)
            self.store.delete(META, reading_direction_key(pdf_id))
            if self.store.get(META, LAST_PDF_KEY) == pdf_id:
                self.store.delete(META, LAST_PDF_KEY)
            self.store.delete(PDFS, pdf_id)
        logger.info("Removed document {} and {} highlights", pdf_id, removed)

    def set_last_opened(self, pdf_id: str) -> None:
        self.store.put(META, pdf_id, key=LAST_PDF_KEY)

    def get_last_opened(self) -> str | None:
        return self.store.get(META, LAST_PDF_KEY) or None

    def clear_last_opened(self) -> None:
        self.store.delete(META, LAST_PDF_KEY)

    def open_path(self, path: str, title: str | None = None) -> Document:
        """Register (or reuse) the document at ``path`` and mark it last-opened."""
        normalized = normalize_path(path)
        document = self.find_by_path(normalized)
        if document is None:
            document = Document(
                id=f"local-{now_ms()}-{uuid.uuid4().hex[:8]}",
                title=title or normalized,
                path=normalized,
            )
            self.add(document)
        self.set_last_opened(document.id)
        return document

    def select(self, pdf_id: str, resolver: PathResolverProtocol) -> Document | None:
        """Make ``pdf_id`` the last-opened document if its path still resolves.

        Unknown ids leave the pointer alone; unresolvable paths clear it.
        """
        document = self.get(pdf_id)
        if document is None:
            return None
        if not resolver.is_resolvable(document.path):
            logger.warning("Document {} is not reachable at {}", pdf_id, document.path)
            self.clear_last_opened()
            return None
        self.set_last_opened(pdf_id)
        return document

    def restore_last_opened(self, resolver: PathResolverProtocol) -> Document | None:
        """Return the last-opened document, clearing the pointer if it no longer resolves."""
        pdf_id = self.get_last_opened()
        if pdf_id is None:
            return None
        document = self.get(pdf_id)
        if document is None or not resolver.is_resolvable(document.path):
            logger.info("Last opened document {} is gone, clearing pointer", pdf_id)
            self.clear_last_opened()
            return None
        return document
