"""Schema loader: import a Python module and discover SchemaDefinition objects."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any

from docstore.types import SchemaDefinition


def _collect(value: Any, found: dict[str, SchemaDefinition]) -> None:
    if isinstance(value, SchemaDefinition):
        found.setdefault(value.name, value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, SchemaDefinition):
                found.setdefault(item.name, item)


def load_schemas(
    schemas: str | None = None,
    schemas_path: str | None = None,
) -> list[SchemaDefinition]:
    """Load SchemaDefinition objects from a Python module.

    Module-level SchemaDefinition instances are picked up, as are lists or
    tuples of them.

    Args:
        schemas: Dotted Python import path (e.g. 'myapp.schemas')
        schemas_path: Filesystem path to a Python file

    Returns:
        Schemas in discovery order, one per collection name
    """
    if schemas_path:
        path = Path(schemas_path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Schemas path not found: {schemas_path}")
        parent = str(path.parent)
        if parent not in sys.path:
            sys.path.insert(0, parent)
        module = importlib.import_module(path.stem)
    elif schemas:
        module = importlib.import_module(schemas)
    else:
        raise ValueError("One of --schemas or --schemas-path is required")

    found: dict[str, SchemaDefinition] = {}
    for attr_name, value in vars(module).items():
        if attr_name.startswith("_"):
            continue
        _collect(value, found)
    return list(found.values())
