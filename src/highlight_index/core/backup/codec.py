"""Export and import of the whole index as a single JSON backup document."""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from highlight_index.core.database.schema import HIGHLIGHTS, META, PDFS, TOPICS
from highlight_index.core.registry.pdfs import LAST_PDF_KEY
from highlight_index.errors import ValidationError
from highlight_index.models.records import Backup, Document, Highlight, Topic
from highlight_index.protocols import StoreProtocol

# Version of the backup document layout. Documents without the field are version 1.
BACKUP_FORMAT_VERSION = 1


def export_backup(store: StoreProtocol) -> Backup:
    """Snapshot every document, highlight and topic plus the last-opened pointer."""
    backup = Backup(
        pdfs=tuple(Document.from_dict(raw) for raw in store.get_all(PDFS)),
        last_pdf_id=store.get(META, LAST_PDF_KEY) or None,
        highlights=tuple(Highlight.from_dict(raw) for raw in store.get_all(HIGHLIGHTS)),
        topics=tuple(Topic.from_dict(raw) for raw in store.get_all(TOPICS)),
    )
    logger.info(
        "Exported {} documents, {} highlights, {} topics",
        len(backup.pdfs), len(backup.highlights), len(backup.topics),
    )
    return backup


def import_backup(store: StoreProtocol, backup: Backup) -> None:
    """Replace documents, highlights and topics with the backup's contents.

    Destructive: records absent from the backup are gone afterwards. Records
    are written verbatim without cross-reference checks. The whole
    replacement is one transaction, so a failure keeps the previous contents.
    """
    with store.transaction():
        for partition in (PDFS, HIGHLIGHTS, TOPICS):
            store.clear(partition)
        for document in backup.pdfs:
            store.put(PDFS, document.to_dict())
        for highlight in backup.highlights:
            store.put(HIGHLIGHTS, highlight.to_dict())
        for topic in backup.topics:
            store.put(TOPICS, topic.to_dict())
        if backup.last_pdf_id:
            store.put(META, backup.last_pdf_id, key=LAST_PDF_KEY)
        else:
            store.delete(META, LAST_PDF_KEY)
    logger.info(
        "Imported {} documents, {} highlights, {} topics",
        len(backup.pdfs), len(backup.highlights), len(backup.topics),
    )


def backup_to_dict(backup: Backup) -> dict[str, Any]:
    return {
        "schemaVersion": BACKUP_FORMAT_VERSION,
        "pdfs": [d.to_dict() for d in backup.pdfs],
        "lastPdfId": backup.last_pdf_id,
        "highlights": [h.to_dict() for h in backup.highlights],
        "topics": [t.to_dict() for t in backup.topics],
    }


def backup_from_dict(data: dict[str, Any]) -> Backup:
    """Parse a backup document, tolerating missing optional sections.

    Record fields this package does not model (for example extra keys written
    by another client) are dropped, so they do not survive an import.
    """
    if not isinstance(data, dict):
        msg = f"Backup must be a JSON object, got {type(data).__name__}"
        raise ValidationError(msg)

    version = data.get("schemaVersion", 1)
    if not isinstance(version, int) or version > BACKUP_FORMAT_VERSION:
        msg = f"Unsupported backup schemaVersion {version!r} (max {BACKUP_FORMAT_VERSION})"
        raise ValidationError(msg)
    if "pdfs" not in data:
        msg = "Backup is missing the 'pdfs' list"
        raise ValidationError(msg)

    return Backup(
        pdfs=tuple(Document.from_dict(raw) for raw in data["pdfs"] or ()),
        last_pdf_id=data.get("lastPdfId") or None,
        highlights=tuple(Highlight.from_dict(raw) for raw in data.get("highlights") or ()),
        topics=tuple(Topic.from_dict(raw) for raw in data.get("topics") or ()),
    )


def dumps(backup: Backup, *, indent: int | None = 2) -> str:
    return json.dumps(backup_to_dict(backup), indent=indent, ensure_ascii=False)


def loads(text: str) -> Backup:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Backup is not valid JSON: {e}"
        raise ValidationError(msg) from e
    return backup_from_dict(data)


def write_backup(path: str | Path, backup: Backup) -> None:
    Path(path).write_text(dumps(backup) + "\n", encoding="utf-8")


def read_backup(path: str | Path) -> Backup:
    return loads(Path(path).read_text(encoding="utf-8"))
