"""Storage port for tournament collections.

The engine talks to a keyed document store: records are JSON-like dicts held
in named collections, each carrying its ``id``. Every mutation re-delivers the
full matching member set to each subscriber of that collection.
"""

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from config.settings import StoreConfig

logger = logging.getLogger(__name__)

Record = dict[str, Any]
SnapshotCallback = Callable[[list[Record]], None]
Unsubscribe = Callable[[], None]


class ObjectStore(ABC):
    """Abstract document store with per-collection change subscriptions."""

    def __init__(self):
        self._listeners: dict[str, list[tuple[dict[str, Any], SnapshotCallback]]] = {}

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Record | None:
        """Return a single record or None."""

    @abstractmethod
    def query(self, collection: str, **equals: Any) -> list[Record]:
        """Return records whose fields equal every given value."""

    @abstractmethod
    def _insert(self, collection: str, record_id: str, record: Record) -> None:
        """Write a record, replacing any existing one with the same id."""

    @abstractmethod
    def _remove(self, collection: str, record_id: str) -> bool:
        """Delete a record, returning whether it existed."""

    def create(self, collection: str, record: Record) -> str:
        """Store a new record under a server-assigned id."""
        record_id = uuid.uuid4().hex
        self._insert(collection, record_id, {**record, "id": record_id})
        self._notify(collection)
        return record_id

    def upsert(
        self, collection: str, record_id: str, record: Record, merge: bool = False
    ) -> None:
        """Store a record under an explicit id, optionally merging fields."""
        existing = self.get(collection, record_id) if merge else None
        data = {**(existing or {}), **record, "id": record_id}
        self._insert(collection, record_id, data)
        self._notify(collection)

    def update(self, collection: str, record_id: str, fields: Record) -> bool:
        """Merge fields into an existing record. False if it does not exist."""
        existing = self.get(collection, record_id)
        if existing is None:
            return False
        self._insert(collection, record_id, {**existing, **fields, "id": record_id})
        self._notify(collection)
        return True

    def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record. False if it did not exist."""
        deleted = self._remove(collection, record_id)
        if deleted:
            self._notify(collection)
        return deleted

    def subscribe(
        self, collection: str, callback: SnapshotCallback, **equals: Any
    ) -> Unsubscribe:
        """Deliver the matching member set now and after every change."""
        entry = (equals, callback)
        self._listeners.setdefault(collection, []).append(entry)
        callback(self.query(collection, **equals))

        def unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if entry in listeners:
                listeners.remove(entry)

        return unsubscribe

    def listener_count(self, collection: str | None = None) -> int:
        """Number of live subscriptions, optionally for one collection."""
        if collection is not None:
            return len(self._listeners.get(collection, []))
        return sum(len(entries) for entries in self._listeners.values())

    def _notify(self, collection: str) -> None:
        for equals, callback in list(self._listeners.get(collection, [])):
            try:
                callback(self.query(collection, **equals))
            except Exception as e:
                logger.error(f"Subscriber for {collection} failed: {e}")

    @staticmethod
    def _matches(record: Record, equals: dict[str, Any]) -> bool:
        return all(record.get(field) == value for field, value in equals.items())


class MemoryObjectStore(ObjectStore):
    """Session-only store kept in dictionaries."""

    def __init__(self):
        super().__init__()
        self._collections: dict[str, dict[str, Record]] = {}

    def get(self, collection: str, record_id: str) -> Record | None:
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def query(self, collection: str, **equals: Any) -> list[Record]:
        return [
            copy.deepcopy(record)
            for record in self._collections.get(collection, {}).values()
            if self._matches(record, equals)
        ]

    def _insert(self, collection: str, record_id: str, record: Record) -> None:
        self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(record)

    def _remove(self, collection: str, record_id: str) -> bool:
        return self._collections.get(collection, {}).pop(record_id, None) is not None


def create_store(config: StoreConfig) -> ObjectStore:
    """Open the configured store, degrading to memory if it is unavailable."""
    if config.backend == "memory":
        logger.info("Using in-memory tournament store")
        return MemoryObjectStore()

    from .database import SQLiteObjectStore

    try:
        store = SQLiteObjectStore(config.db_path)
    except Exception as e:
        logger.warning(f"Offline/local mode active, store unavailable: {e}")
        return MemoryObjectStore()

    logger.info(f"Using SQLite tournament store at {config.db_path}")
    return store
