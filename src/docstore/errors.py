"""Structured error types for docstore."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class DocstoreError(Exception):
    """Base error for all docstore errors."""


@dataclass(frozen=True)
class FieldError:
    """One validation failure: a dotted/bracketed field path and a message."""

    field: str
    message: str


class ValidationError(DocstoreError):
    """Raised when a governed write fails schema validation."""

    def __init__(self, collection: str, errors: list[FieldError]) -> None:
        self.collection = collection
        self.errors = errors
        details = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"Validation failed for collection '{collection}': {details}")


@dataclass(frozen=True)
class BlockingReference:
    """A collection/field pair whose records block a delete or id change."""

    collection: str
    field: str
    count: int


class ReferentialIntegrityError(DocstoreError):
    """Raised when a restrict relation refuses a delete or an id change."""

    def __init__(
        self,
        collection: str,
        record_id: Any,
        blocking: list[BlockingReference],
        *,
        action: str = "delete",
    ) -> None:
        self.collection = collection
        self.record_id = record_id
        self.blocking = blocking
        self.action = action
        refs = ", ".join(f"{b.collection}.{b.field} ({b.count})" for b in blocking)
        super().__init__(
            f"Cannot {action} '{collection}' record {record_id!r}: referenced by {refs}"
        )


class DuplicateIdError(DocstoreError):
    """Raised when a write would give two records of a collection the same id."""

    def __init__(self, collection: str, record_id: Any) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"Collection '{collection}' already has a record with id {record_id!r}")


class InvalidCursorError(DocstoreError, ValueError):
    """Raised when a pagination cursor does not decode to a start offset."""

    def __init__(self, cursor: str) -> None:
        self.cursor = cursor
        super().__init__(f"Invalid pagination cursor: {cursor!r}")


class SchemaDefinitionError(DocstoreError):
    """Raised when a schema definition cannot be parsed or registered."""


class StorageBackendError(DocstoreError):
    """Raised when backend storage operations fail."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage backend error during {operation}: {detail}")


class ImportFormatError(DocstoreError, ValueError):
    """Raised when serialized collections cannot be parsed."""

    def __init__(self, fmt: str, detail: str) -> None:
        self.format = fmt
        self.detail = detail
        super().__init__(f"Cannot import {fmt} content: {detail}")
