"""Relation graph, referential integrity, and relation expansion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable

from docstore.errors import BlockingReference, ReferentialIntegrityError
from docstore.logging import get_logger
from docstore.registry import SchemaRegistry
from docstore.store import CollectionStore
from docstore.types import ReferenceAction, Relation, RelationType, SchemaDefinition
from docstore.values import Record, RecordId

logger = get_logger(__name__)

_SINGLE = (RelationType.ONE_TO_ONE, RelationType.MANY_TO_ONE)


@dataclass(frozen=True)
class RelationRef:
    """A relational field declared by a collection's own schema."""

    field: str
    relation: Relation


@dataclass(frozen=True)
class Reference:
    """A field of ``collection`` whose relation targets some other collection."""

    collection: str
    field: str
    relation: Relation


@dataclass(frozen=True)
class Dependency:
    """Records of ``collection`` holding a key of another collection in ``field``.

    ``relation`` carries the onDelete/onUpdate policy that governs them.
    """

    collection: str
    field: str
    relation: Relation


def _visit_key(collection: str, record_id: Any) -> tuple[str, Hashable]:
    try:
        hash(record_id)
    except TypeError:
        return collection, repr(record_id)
    return collection, record_id


class RelationManager:
    """Enforces and propagates referential integrity across collections.

    The relation graph is derived from the registry and rebuilt whenever a
    schema is (re)registered.
    """

    def __init__(self, registry: SchemaRegistry, store: CollectionStore) -> None:
        self.registry = registry
        self.store = store
        self._forward: dict[str, list[RelationRef]] = {}
        self._reverse: dict[str, list[Reference]] = {}
        self._rebuild()
        self._unsubscribe = registry.subscribe(self._on_schema_registered)

    def _on_schema_registered(self, schema: SchemaDefinition) -> None:
        self._rebuild()

    def _rebuild(self) -> None:
        forward: dict[str, list[RelationRef]] = {}
        reverse: dict[str, list[Reference]] = {}
        for schema in self.registry.all():
            for name, definition in schema.fields.items():
                if definition.relation is None:
                    continue
                rel = definition.relation
                forward.setdefault(schema.name, []).append(RelationRef(name, rel))
                reverse.setdefault(rel.collection, []).append(Reference(schema.name, name, rel))
        self._forward = forward
        self._reverse = reverse
        logger.debug(
            "relation_graph_rebuilt",
            relations=sum(len(v) for v in forward.values()),
        )

    def close(self) -> None:
        self._unsubscribe()

    # --- Graph ---

    def relations_of(self, collection: str) -> list[RelationRef]:
        return list(self._forward.get(collection, []))

    def references_to(self, collection: str) -> list[Reference]:
        return list(self._reverse.get(collection, []))

    def join_collection(self, source: str, target: str) -> str | None:
        """Name of the join collection for a manyToMany link, if one exists."""
        primary = f"{source}_{target}"
        if self.store.has_collection(primary):
            return primary
        mirrored = f"{target}_{source}"
        if self.store.has_collection(mirrored):
            return mirrored
        return None

    def dependents_of(self, collection: str) -> list[Dependency]:
        """Every record set that holds keys of ``collection``.

        Covers fields elsewhere pointing here (oneToOne/manyToOne), this
        collection's own oneToMany relations, and manyToMany join rows on
        either side.
        """
        deps: list[Dependency] = []
        for ref in self.references_to(collection):
            rel = ref.relation
            if rel.type in _SINGLE:
                deps.append(Dependency(ref.collection, ref.field, rel))
            elif rel.type == RelationType.MANY_TO_MANY and rel.foreign_field:
                join = self.join_collection(ref.collection, collection)
                if join is not None:
                    deps.append(Dependency(join, rel.foreign_field, rel))
        for own in self.relations_of(collection):
            rel = own.relation
            if rel.type == RelationType.ONE_TO_MANY:
                deps.append(Dependency(rel.collection, rel.field, rel))
            elif rel.type == RelationType.MANY_TO_MANY:
                join = self.join_collection(collection, rel.collection)
                if join is not None:
                    deps.append(Dependency(join, rel.field, rel))
        return deps

    # --- Integrity checks ---

    def blocking_references(
        self, collection: str, record_id: RecordId, action: str = "delete"
    ) -> list[BlockingReference]:
        """Restrict relations that currently refuse a delete or id change."""
        blocking: list[BlockingReference] = []
        for dep in self.dependents_of(collection):
            policy = dep.relation.on_delete if action == "delete" else dep.relation.on_update
            if policy != ReferenceAction.RESTRICT:
                continue
            count = len(self.store.find_by(dep.collection, {dep.field: record_id}))
            if count:
                blocking.append(BlockingReference(dep.collection, dep.field, count))
        return blocking

    def can_delete(self, collection: str, record_id: RecordId) -> bool:
        return not self.blocking_references(collection, record_id, "delete")

    def can_update(self, collection: str, old_id: RecordId) -> bool:
        return not self.blocking_references(collection, old_id, "update")

    # --- Propagation ---

    def delete(self, collection: str, record_id: RecordId) -> bool:
        """Delete a record after checking restrict relations, then cascade.

        Raises ReferentialIntegrityError when a restrict relation refuses,
        at any level of the cascade. Steps already applied are not undone.
        """
        return self._delete(collection, record_id, set())

    def _delete(
        self, collection: str, record_id: RecordId, visited: set[tuple[str, Hashable]]
    ) -> bool:
        key = _visit_key(collection, record_id)
        if key in visited:
            return False
        visited.add(key)

        if self.store.get(collection, record_id) is None:
            return False
        blocking = self.blocking_references(collection, record_id, "delete")
        if blocking:
            raise ReferentialIntegrityError(collection, record_id, blocking)

        removed = self.store.remove(collection, record_id)
        self._cascade_delete(collection, record_id, visited)
        return removed

    def cascade_delete(
        self,
        collection: str,
        record_id: RecordId,
        visited: set[tuple[str, Hashable]] | None = None,
    ) -> None:
        """Apply every dependent's onDelete policy for a deleted key."""
        seen = visited if visited is not None else set()
        seen.add(_visit_key(collection, record_id))
        self._cascade_delete(collection, record_id, seen)

    def _cascade_delete(
        self, collection: str, record_id: RecordId, visited: set[tuple[str, Hashable]]
    ) -> None:
        for dep in self.dependents_of(collection):
            policy = dep.relation.on_delete
            if policy is None or policy == ReferenceAction.RESTRICT:
                continue
            matches = self.store.find_by(dep.collection, {dep.field: record_id})
            if not matches:
                continue
            logger.info(
                "cascade_delete",
                source=collection,
                id=record_id,
                target=dep.collection,
                field=dep.field,
                action=policy.value,
                count=len(matches),
            )
            if policy == ReferenceAction.CASCADE:
                for match in matches:
                    self._delete(dep.collection, match["id"], visited)
            else:
                self._reassign(dep, policy, matches, None)

    def cascade_update(self, collection: str, old_id: RecordId, new_id: RecordId) -> None:
        """Apply every dependent's onUpdate policy for a changed key."""
        for dep in self.dependents_of(collection):
            policy = dep.relation.on_update
            if policy is None or policy == ReferenceAction.RESTRICT:
                continue
            matches = self.store.find_by(dep.collection, {dep.field: old_id})
            if not matches:
                continue
            logger.info(
                "cascade_update",
                source=collection,
                old_id=old_id,
                new_id=new_id,
                target=dep.collection,
                field=dep.field,
                action=policy.value,
                count=len(matches),
            )
            self._reassign(dep, policy, matches, new_id)

    def _reassign(
        self,
        dep: Dependency,
        policy: ReferenceAction,
        matches: list[Record],
        new_id: RecordId | None,
    ) -> None:
        if policy == ReferenceAction.SET_DEFAULT:
            schema = self.registry.get(dep.collection)
            if schema is None or dep.field not in schema.fields:
                return
            definition = schema.fields[dep.field]
            for match in matches:
                self.store.update(
                    dep.collection, match["id"], {dep.field: definition.produce_default()}
                )
            return
        value = new_id if policy == ReferenceAction.CASCADE else None
        for match in matches:
            self.store.update(dep.collection, match["id"], {dep.field: value})

    # --- Expansion ---

    def expand(self, collection: str, record: Record | None, depth: int = 1) -> Record | None:
        """Replace relational fields with the related records.

        Single relations keep the raw value when the target is missing;
        list relations drop missing targets. With ``depth > 1`` each related
        record is expanded in turn at ``depth - 1``.
        """
        if depth <= 0 or record is None:
            return record
        if self.registry.get(collection) is None:
            return record

        result = dict(record)
        for own in self.relations_of(collection):
            rel = own.relation
            target = rel.collection

            if rel.type in _SINGLE:
                value = result.get(own.field)
                if value is None:
                    continue
                related = self.store.get(target, value)
                if related is not None:
                    result[own.field] = self._expand_related(target, related, depth)

            elif rel.type == RelationType.ONE_TO_MANY:
                if result.get("id") is None:
                    continue
                related_list = self.store.find_by(target, {rel.field: result["id"]})
                result[own.field] = [
                    self._expand_related(target, r, depth) for r in related_list
                ]

            elif rel.type == RelationType.MANY_TO_MANY:
                if not rel.foreign_field or result.get("id") is None:
                    continue
                join = self.join_collection(collection, target)
                if join is None:
                    continue
                rows = self.store.find_by(join, {rel.field: result["id"]})
                expanded = []
                for row in rows:
                    if rel.foreign_field not in row:
                        continue
                    related = self.store.get(target, row[rel.foreign_field])
                    if related is not None:
                        expanded.append(self._expand_related(target, related, depth))
                result[own.field] = expanded

        return result

    def _expand_related(self, target: str, related: Record, depth: int) -> Record:
        if depth > 1:
            expanded = self.expand(target, related, depth - 1)
            assert expanded is not None
            return expanded
        return related
