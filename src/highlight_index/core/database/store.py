"""SQLite-backed partitioned record store."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger

from highlight_index.core.database.schema import PARTITIONS, Partition, migrate_schema
from highlight_index.errors import StorageUnavailable, ValidationError


class SqliteStore:
    """A versioned local key-value database with named partitions.

    Each partition maps a primary key to a JSON value. Record partitions take
    the key from the record's ``key_path`` field; ``meta`` takes it explicitly.
    Statements outside ``transaction()`` commit individually.

    The connection is opened lazily by the first operation, and the schema is
    migrated and committed before any partition is touched.
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    def open(self) -> sqlite3.Connection:
        """Open the database and migrate its schema. Idempotent."""
        if self._conn is not None:
            return self._conn
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path, isolation_level=None)
            conn.execute("PRAGMA journal_mode=WAL")
            migrate_schema(conn)
        except (OSError, sqlite3.Error) as e:
            msg = f"Cannot open store at {self.path!r}: {e}"
            raise StorageUnavailable(msg) from e
        logger.debug("Store opened at {}", self.path)
        self._conn = conn
        return conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        conn = self.open()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            msg = f"Store operation failed: {e}"
            raise StorageUnavailable(msg) from e

    @contextmanager
    def transaction(self) -> Iterator["SqliteStore"]:
        """Group operations across partitions into one all-or-nothing unit.

        Nested use joins the outermost transaction.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        self._execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield self
            self._execute("COMMIT")
        except BaseException:
            self._rollback()
            raise
        finally:
            self._tx_depth = 0

    def _rollback(self) -> None:
        # A failed COMMIT may already have ended the transaction.
        if self._conn is not None and self._conn.in_transaction:
            self._conn.execute("ROLLBACK")
            logger.debug("Store transaction rolled back")

    @staticmethod
    def _partition(name: str) -> Partition:
        try:
            return PARTITIONS[name]
        except KeyError:
            msg = f"Unknown partition {name!r}"
            raise ValidationError(msg) from None

    def put(self, partition: str, value: Any, key: str | None = None) -> str:
        """Insert or replace a value. Returns the key it was stored under."""
        part = self._partition(partition)
        if part.key_path is not None:
            if not isinstance(value, dict) or value.get(part.key_path) in (None, ""):
                msg = f"Record for {partition!r} is missing its {part.key_path!r} field"
                raise ValidationError(msg)
            key = str(value[part.key_path])
        elif key is None:
            msg = f"Partition {partition!r} requires an explicit key"
            raise ValidationError(msg)

        index_value = None
        if part.index_field is not None and value.get(part.index_field) is not None:
            index_value = str(value[part.index_field])

        self._execute(
            f"INSERT OR REPLACE INTO {part.name} (key, value, index_value) VALUES (?, ?, ?)",
            (key, json.dumps(value, ensure_ascii=False), index_value),
        )
        return key

    def get(self, partition: str, key: str) -> Any | None:
        part = self._partition(partition)
        row = self._execute(f"SELECT value FROM {part.name} WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else None

    def get_all(self, partition: str) -> list[Any]:
        """Return every value in the partition, ordered by primary key."""
        part = self._partition(partition)
        rows = self._execute(f"SELECT value FROM {part.name} ORDER BY key").fetchall()
        return [json.loads(r[0]) for r in rows]

    def get_all_by_index(self, partition: str, index_value: str) -> list[Any]:
        part = self._partition(partition)
        if part.index_field is None:
            msg = f"Partition {partition!r} has no secondary index"
            raise ValidationError(msg)
        rows = self._execute(
            f"SELECT value FROM {part.name} WHERE index_value = ? ORDER BY key",
            (index_value,),
        ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def delete(self, partition: str, key: str) -> None:
        part = self._partition(partition)
        self._execute(f"DELETE FROM {part.name} WHERE key = ?", (key,))

    def clear(self, partition: str) -> None:
        part = self._partition(partition)
        self._execute(f"DELETE FROM {part.name}")

    def count(self, partition: str) -> int:
        part = self._partition(partition)
        return int(self._execute(f"SELECT COUNT(*) FROM {part.name}").fetchone()[0])
