"""docstore: embeddable, schema-governed document store with relations."""

__version__ = "0.1.0"

from docstore.config import DocstoreConfig
from docstore.database import Database
from docstore.errors import (
    DocstoreError,
    DuplicateIdError,
    FieldError,
    ImportFormatError,
    InvalidCursorError,
    ReferentialIntegrityError,
    SchemaDefinitionError,
    StorageBackendError,
    ValidationError,
)
from docstore.filters import FilterCondition, FilterGroup, all_of, any_of, field_ref, none_of
from docstore.params import parse_query_params
from docstore.query import (
    CursorPagination,
    OffsetPagination,
    QueryOptions,
    QueryResult,
    SearchOptions,
    SortSpec,
    evaluate,
)
from docstore.registry import SchemaRegistry
from docstore.relations import RelationManager
from docstore.storage import JsonFileStorage, MemoryStorage, SqliteStorage, open_storage
from docstore.store import CollectionStore
from docstore.types import (
    FieldDefinition,
    GeneratorDefault,
    LiteralDefault,
    ReferenceAction,
    Relation,
    RelationType,
    SchemaDefinition,
)
from docstore.validation import ValidationResult, transform, validate

__all__ = [
    "__version__",
    "Database",
    "CollectionStore",
    "SchemaRegistry",
    "RelationManager",
    "SchemaDefinition",
    "FieldDefinition",
    "Relation",
    "RelationType",
    "ReferenceAction",
    "LiteralDefault",
    "GeneratorDefault",
    "FilterCondition",
    "FilterGroup",
    "field_ref",
    "all_of",
    "any_of",
    "none_of",
    "QueryOptions",
    "QueryResult",
    "SortSpec",
    "OffsetPagination",
    "CursorPagination",
    "SearchOptions",
    "evaluate",
    "parse_query_params",
    "validate",
    "transform",
    "ValidationResult",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "open_storage",
    "DocstoreConfig",
    "DocstoreError",
    "ValidationError",
    "FieldError",
    "ReferentialIntegrityError",
    "DuplicateIdError",
    "InvalidCursorError",
    "SchemaDefinitionError",
    "StorageBackendError",
    "ImportFormatError",
]
