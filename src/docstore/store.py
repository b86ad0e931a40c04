"""Collection store: named collections of records with CRUD and persistence."""

from __future__ import annotations

import copy
from typing import Any, Mapping

from docstore.errors import DocstoreError, DuplicateIdError, StorageBackendError
from docstore.logging import get_logger
from docstore.query import CollectionQuery, QueryOptions, QueryResult, evaluate, snapshot
from docstore.registry import SchemaRegistry
from docstore.storage import Collections, MemoryStorage, StorageAdapter
from docstore.values import Record, RecordId, is_number, strict_equals

logger = get_logger(__name__)

DEFAULT_STORAGE_KEY = "docstore"


def _next_id(records: list[Record]) -> int | float:
    numeric = [r["id"] for r in records if is_number(r.get("id"))]
    next_id = max(numeric, default=0) + 1
    if isinstance(next_id, float) and next_id.is_integer():
        return int(next_id)
    return next_id


class CollectionStore:
    """In-memory collections of records, persisted through a storage adapter.

    Every mutation changes memory first and then saves the whole collections
    map under ``key``. If saving fails, StorageBackendError is raised but the
    in-memory change stands.
    """

    def __init__(
        self,
        storage: StorageAdapter | None = None,
        *,
        registry: SchemaRegistry | None = None,
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self.storage: StorageAdapter = storage if storage is not None else MemoryStorage()
        self.registry = registry if registry is not None else SchemaRegistry()
        self.key = key
        self._data: Collections = {}

    # --- Persistence ---

    def _persist(self) -> None:
        try:
            self.storage.save(self.key, self._data)
        except DocstoreError:
            logger.warning("store_persist_failed", key=self.key)
            raise
        except Exception as e:
            logger.warning("store_persist_failed", key=self.key, error=str(e))
            raise StorageBackendError("save", str(e)) from e

    def load(self) -> None:
        """Replace in-memory state with what the adapter holds (if anything)."""
        try:
            stored = self.storage.load(self.key)
        except DocstoreError:
            raise
        except Exception as e:
            raise StorageBackendError("load", str(e)) from e
        self._data = stored if stored is not None else {}
        logger.debug(
            "store_loaded",
            key=self.key,
            collections=len(self._data),
            records=sum(len(v) for v in self._data.values()),
        )

    def clear(self) -> None:
        """Drop every collection and the persisted snapshot."""
        self._data = {}
        try:
            self.storage.remove(self.key)
        except DocstoreError:
            raise
        except Exception as e:
            raise StorageBackendError("remove", str(e)) from e

    # --- Collections ---

    def collections(self) -> list[str]:
        return list(self._data)

    def has_collection(self, collection: str) -> bool:
        return collection in self._data

    def create_collection(self, collection: str) -> None:
        if collection not in self._data:
            self._data[collection] = []
            logger.debug("collection_created", collection=collection)
            self._persist()

    def count(self, collection: str) -> int:
        return len(self._data.get(collection, []))

    # --- Reads ---

    def _index_of(self, collection: str, record_id: Any) -> int:
        for i, record in enumerate(self._data.get(collection, [])):
            if strict_equals(record.get("id"), record_id):
                return i
        return -1

    def all(self, collection: str) -> list[Record]:
        return snapshot(self._data.get(collection, []))

    def get(self, collection: str, record_id: RecordId) -> Record | None:
        index = self._index_of(collection, record_id)
        if index < 0:
            return None
        return copy.deepcopy(self._data[collection][index])

    def find_by(self, collection: str, criteria: Mapping[str, Any]) -> list[Record]:
        """Records whose fields strictly equal every criterion."""
        return snapshot(
            r
            for r in self._data.get(collection, [])
            if all(k in r and strict_equals(r[k], v) for k, v in criteria.items())
        )

    def query(self, collection: str, options: QueryOptions | None = None) -> QueryResult:
        return evaluate(self.all(collection), options)

    def collection(self, name: str) -> CollectionQuery:
        return CollectionQuery(self, name)

    # --- Writes ---

    def add(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Insert a record, assigning the next numeric id when it has none."""
        records = self._data.setdefault(collection, [])
        new = copy.deepcopy(dict(record))
        if new.get("id") is None:
            new["id"] = _next_id(records)
        elif self._index_of(collection, new["id"]) >= 0:
            raise DuplicateIdError(collection, new["id"])
        records.append(new)
        logger.debug("record_added", collection=collection, id=new["id"])
        self._persist()
        return copy.deepcopy(new)

    def update(
        self, collection: str, record_id: RecordId, changes: Mapping[str, Any]
    ) -> Record | None:
        """Shallow-merge ``changes`` into a record; returns the merged record or None."""
        index = self._index_of(collection, record_id)
        if index < 0:
            return None
        records = self._data[collection]
        merged = {**records[index], **copy.deepcopy(dict(changes))}
        if merged.get("id") is None:
            merged["id"] = records[index]["id"]
        new_id = merged["id"]
        if not strict_equals(new_id, record_id):
            other = self._index_of(collection, new_id)
            if other >= 0 and other != index:
                raise DuplicateIdError(collection, new_id)
        records[index] = merged
        logger.debug("record_updated", collection=collection, id=record_id, new_id=new_id)
        self._persist()
        return copy.deepcopy(merged)

    def replace(
        self, collection: str, record_id: RecordId, record: Mapping[str, Any]
    ) -> Record | None:
        """Swap a record for ``record`` wholesale, keeping its position."""
        index = self._index_of(collection, record_id)
        if index < 0:
            return None
        new = copy.deepcopy(dict(record))
        if new.get("id") is None:
            new["id"] = self._data[collection][index]["id"]
        if not strict_equals(new["id"], record_id) and self._index_of(collection, new["id"]) >= 0:
            raise DuplicateIdError(collection, new["id"])
        self._data[collection][index] = new
        logger.debug("record_replaced", collection=collection, id=record_id, new_id=new["id"])
        self._persist()
        return copy.deepcopy(new)

    def remove(self, collection: str, record_id: RecordId) -> bool:
        index = self._index_of(collection, record_id)
        if index < 0:
            return False
        del self._data[collection][index]
        logger.debug("record_removed", collection=collection, id=record_id)
        self._persist()
        return True

    # --- Bulk ---

    def export(self) -> Collections:
        return copy.deepcopy(self._data)

    def import_data(self, data: Mapping[str, list[Record]]) -> None:
        """Swap in a whole collections map, then persist it."""
        replacement: Collections = {}
        for name, records in data.items():
            if not isinstance(records, list):
                raise ValueError(f"Collection '{name}' must be a list of records")
            replacement[name] = copy.deepcopy(records)
        self._data = replacement
        logger.info(
            "store_imported",
            collections=len(replacement),
            records=sum(len(v) for v in replacement.values()),
        )
        self._persist()
