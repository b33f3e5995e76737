"""Versioned, additive-only partition schema for the highlight index."""

import sqlite3
from dataclasses import dataclass

from loguru import logger

SCHEMA_VERSION = 4


@dataclass(frozen=True)
class Partition:
    """A named record table. ``key_path`` None means a plain key -> value map."""

    name: str
    since_version: int
    key_path: str | None = "id"
    index_field: str | None = None


PDFS = "pdfs"
META = "meta"
HIGHLIGHTS = "highlights"
TOPICS = "topics"
BOOKMARKS = "bookmarks"

PARTITIONS: dict[str, Partition] = {
    p.name: p
    for p in (
        Partition(PDFS, since_version=1),
        Partition(META, since_version=1, key_path=None),
        Partition(HIGHLIGHTS, since_version=2, index_field="pdfId"),
        Partition(TOPICS, since_version=3),
        Partition(BOOKMARKS, since_version=4, index_field="pdfId"),
    )
}

_SCHEMA_INFO_SQL = """\
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def _partition_sql(partition: Partition) -> str:
    sql = (
        f"CREATE TABLE IF NOT EXISTS {partition.name} (\n"
        "    key TEXT PRIMARY KEY,\n"
        "    value TEXT NOT NULL,\n"
        "    index_value TEXT\n"
        ");\n"
    )
    if partition.index_field:
        sql += (
            f"CREATE INDEX IF NOT EXISTS idx_{partition.name}_{partition.index_field} "
            f"ON {partition.name}(index_value);\n"
        )
    return sql


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the stored schema version, or None for a fresh database."""
    try:
        row = conn.execute(
            "SELECT value FROM schema_info WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None


def migrate_schema(conn: sqlite3.Connection, *, target_version: int = SCHEMA_VERSION) -> int:
    """Create every partition introduced after the stored version.

    Upgrades are additive: existing partitions and their records are never
    dropped. Returns the version the database is at afterwards.
    """
    current = get_schema_version(conn) or 0
    if current >= target_version:
        return current

    conn.executescript(_SCHEMA_INFO_SQL)
    for partition in PARTITIONS.values():
        if current < partition.since_version <= target_version:
            conn.executescript(_partition_sql(partition))
            logger.debug("Created partition {} (v{})", partition.name, partition.since_version)
    conn.execute(
        "INSERT OR REPLACE INTO schema_info (key, value) VALUES (?, ?)",
        ("schema_version", str(target_version)),
    )
    conn.commit()
    logger.info("Store schema migrated from v{} to v{}", current, target_version)
    return target_version


def list_partition_tables(conn: sqlite3.Connection) -> set[str]:
    """Return the names of partition tables present in the database."""
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {row[0] for row in rows} & PARTITIONS.keys()
