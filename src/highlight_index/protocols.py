"""Protocols for dependency injection in the highlight index."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoreProtocol(Protocol):
    """The record CRUD contract every component uses to reach storage."""

    def put(self, partition: str, value: Any, key: str | None = None) -> str:
        """Insert or replace a value, returning its key."""
        ...

    def get(self, partition: str, key: str) -> Any | None:
        """Return the value stored under key, or None."""
        ...

    def get_all(self, partition: str) -> list[Any]:
        """Return every value in a partition."""
        ...

    def get_all_by_index(self, partition: str, index_value: str) -> list[Any]:
        """Return values whose secondary index field equals index_value."""
        ...

    def delete(self, partition: str, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        ...

    def clear(self, partition: str) -> None:
        """Remove every value in a partition."""
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        """Group operations into one all-or-nothing unit."""
        ...


@runtime_checkable
class PathResolverProtocol(Protocol):
    """Decides whether a stored document path still points at a readable PDF."""

    def is_resolvable(self, path: str) -> bool:
        """Return True when the path can be opened as a PDF."""
        ...
