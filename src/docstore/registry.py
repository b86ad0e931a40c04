"""Schema registry: the set of schemas governing a store."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from docstore.logging import get_logger
from docstore.types import SchemaDefinition

logger = get_logger(__name__)

SchemaListener = Callable[[SchemaDefinition], None]


class SchemaRegistry:
    """Holds schemas by collection name and notifies listeners on registration.

    Re-registering a name replaces the definition; operations already in
    progress keep the definition they looked up.
    """

    def __init__(self, schemas: Iterable[SchemaDefinition] = ()) -> None:
        self._schemas: dict[str, SchemaDefinition] = {}
        self._listeners: list[SchemaListener] = []
        for schema in schemas:
            self.register(schema)

    def register(self, schema: SchemaDefinition) -> None:
        replaced = schema.name in self._schemas
        self._schemas[schema.name] = schema
        logger.debug("schema_registered", collection=schema.name, replaced=replaced)
        for listener in list(self._listeners):
            listener(schema)

    def get(self, name: str) -> SchemaDefinition | None:
        return self._schemas.get(name)

    def all(self) -> list[SchemaDefinition]:
        return list(self._schemas.values())

    def names(self) -> list[str]:
        return list(self._schemas)

    def subscribe(self, listener: SchemaListener) -> Callable[[], None]:
        """Call ``listener`` after every registration; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[SchemaDefinition]:
        return iter(list(self._schemas.values()))
