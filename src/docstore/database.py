"""Database facade: schema-governed CRUD over a collection store."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from docstore import interchange
from docstore.config import DocstoreConfig
from docstore.errors import DuplicateIdError, ReferentialIntegrityError, ValidationError
from docstore.logging import get_logger
from docstore.params import parse_expand, parse_query_params
from docstore.query import CollectionQuery, QueryOptions, QueryResult
from docstore.registry import SchemaRegistry
from docstore.relations import RelationManager
from docstore.storage import Collections, StorageAdapter, open_storage
from docstore.store import CollectionStore
from docstore.types import SchemaDefinition
from docstore.validation import transform, validate
from docstore.values import Record, RecordId, strict_equals

logger = get_logger(__name__)


class Database:
    """Entry point tying schemas, storage, validation, and relations together.

    Writes to a collection with a registered schema are transformed
    (defaults, transforms, timestamps) and validated before they reach the
    store. Deletes and id changes go through the relation manager so
    restrict, cascade, setNull and setDefault policies apply.

    Example:
        db = Database.open("sqlite:///shop.db", schemas=[productos])
        db.create("productos", {"nombre": "Teclado", "precio": 45})
        db.find_params("productos", {"precio_gte": "40", "_sort": "precio"})
    """

    def __init__(
        self,
        storage: StorageAdapter | None = None,
        *,
        config: DocstoreConfig | None = None,
        registry: SchemaRegistry | None = None,
        schemas: Iterable[SchemaDefinition] = (),
        load: bool = True,
    ) -> None:
        self.config = config or DocstoreConfig()
        self.registry = registry if registry is not None else SchemaRegistry()
        self.store = CollectionStore(
            storage, registry=self.registry, key=self.config.storage_key
        )
        self.relations = RelationManager(self.registry, self.store)
        for schema in schemas:
            self.register_schema(schema)
        if load:
            self.store.load()

    @classmethod
    def open(
        cls,
        storage_uri: str | None = None,
        *,
        config: DocstoreConfig | None = None,
        registry: SchemaRegistry | None = None,
        schemas: Iterable[SchemaDefinition] = (),
    ) -> Database:
        """Open a database on the storage a URI points at (memory when omitted)."""
        cfg = config or DocstoreConfig()
        return cls(
            open_storage(storage_uri, config=cfg),
            config=cfg,
            registry=registry,
            schemas=schemas,
        )

    def close(self) -> None:
        self.relations.close()
        closer = getattr(self.store.storage, "close", None)
        if callable(closer):
            closer()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # --- Schemas ---

    def register_schema(self, schema: SchemaDefinition) -> None:
        self.registry.register(schema)

    def schema(self, collection: str) -> SchemaDefinition | None:
        return self.registry.get(collection)

    def collections(self) -> list[str]:
        return self.store.collections()

    # --- Reads ---

    def get(
        self,
        collection: str,
        record_id: RecordId,
        *,
        expand: bool = False,
        depth: int = 1,
    ) -> Record | None:
        record = self.store.get(collection, record_id)
        if record is None or not expand:
            return record
        return self.relations.expand(collection, record, min(depth, self.config.max_expand_depth))

    def find(
        self,
        collection: str,
        options: QueryOptions | None = None,
        *,
        expand_depth: int = 0,
    ) -> QueryResult:
        result = self.store.query(collection, options)
        depth = min(expand_depth, self.config.max_expand_depth)
        if depth > 0:
            result.data = [
                self.relations.expand(collection, r, depth) or r for r in result.data
            ]
        return result

    def find_params(self, collection: str, params: Mapping[str, str]) -> QueryResult:
        """Query with flat string parameters such as a URL query string carries."""
        options = parse_query_params(params, config=self.config)
        return self.find(collection, options, expand_depth=parse_expand(params, self.config))

    def collection(self, name: str) -> CollectionQuery:
        return self.store.collection(name)

    # --- Writes ---

    def _check(self, collection: str, record: Record, *, is_new: bool, partial: bool) -> Record:
        schema = self.registry.get(collection)
        if schema is None:
            return record
        prepared = transform(record, schema, is_new=is_new)
        result = validate(prepared, schema, partial=partial)
        if not result.valid:
            logger.debug(
                "validation_failed", collection=collection, errors=len(result.errors)
            )
            raise ValidationError(collection, result.errors)
        return prepared

    def _change_id(self, collection: str, old_id: RecordId, new_id: RecordId) -> None:
        if self.store.get(collection, new_id) is not None:
            raise DuplicateIdError(collection, new_id)
        blocking = self.relations.blocking_references(collection, old_id, "update")
        if blocking:
            raise ReferentialIntegrityError(collection, old_id, blocking, action="update")
        self.relations.cascade_update(collection, old_id, new_id)

    def create(self, collection: str, data: Mapping[str, Any]) -> Record:
        """Insert a record; raises ValidationError when the schema rejects it."""
        record = self._check(collection, dict(data), is_new=True, partial=False)
        return self.store.add(collection, record)

    def replace(
        self, collection: str, record_id: RecordId, data: Mapping[str, Any]
    ) -> Record | None:
        """Replace a whole record. Returns None when it does not exist.

        A different ``id`` in ``data`` renames the record, after restrict
        checks and onUpdate propagation to records that reference it.
        """
        if self.store.get(collection, record_id) is None:
            return None
        new_id = data.get("id")
        if new_id is None:
            new_id = record_id
        record = self._check(
            collection, {**data, "id": new_id}, is_new=False, partial=False
        )
        if not strict_equals(new_id, record_id):
            self._change_id(collection, record_id, new_id)
        return self.store.replace(collection, record_id, record)

    def patch(
        self, collection: str, record_id: RecordId, changes: Mapping[str, Any]
    ) -> Record | None:
        """Merge ``changes`` into a record; only the merged result is validated."""
        existing = self.store.get(collection, record_id)
        if existing is None:
            return None
        combined = {**existing, **changes}
        if combined.get("id") is None:
            combined["id"] = existing["id"]
        new_id = combined["id"]
        record = self._check(collection, combined, is_new=False, partial=True)
        if not strict_equals(new_id, record_id):
            self._change_id(collection, record_id, new_id)
        return self.store.update(collection, record_id, record)

    def delete(self, collection: str, record_id: RecordId) -> bool:
        """Delete a record and propagate onDelete policies.

        Returns False when the record does not exist; raises
        ReferentialIntegrityError when a restrict relation refuses.
        """
        if self.store.get(collection, record_id) is None:
            return False
        return self.relations.delete(collection, record_id)

    # --- Bulk ---

    def export(self) -> Collections:
        return self.store.export()

    def import_data(self, data: Mapping[str, list[Record]]) -> None:
        self.store.import_data(data)

    def dump(self, fmt: str = "json") -> str:
        return interchange.dumps(self.store.export(), fmt)

    def load_dump(self, text: str, fmt: str = "json") -> None:
        self.store.import_data(interchange.loads(text, fmt))

    def info(self) -> dict[str, Any]:
        counts = {name: self.store.count(name) for name in self.store.collections()}
        describe = getattr(self.store.storage, "storage_info", None)
        return {
            "storage_key": self.store.key,
            "storage": describe() if callable(describe) else {"backend": "custom"},
            "collections": counts,
            "schemas": self.registry.names(),
        }
