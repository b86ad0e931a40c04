"""docstore schema: inspect the schemas loaded with --schemas/--schemas-path."""

from __future__ import annotations

import json
from typing import Any

import typer
import yaml

from docstore.cli import _exitcodes as ec
from docstore.cli._loader import load_schemas
from docstore.cli._output import print_error, print_table
from docstore.types import SchemaDefinition

app = typer.Typer(no_args_is_help=True)


def _load() -> list[SchemaDefinition]:
    from docstore.cli import state

    if not state.schemas and not state.schemas_path:
        print_error("One of --schemas or --schemas-path is required")
        raise typer.Exit(ec.USAGE_ERROR)
    try:
        return load_schemas(state.schemas, state.schemas_path)
    except Exception as e:
        print_error(f"Failed to load schemas: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)


def _relation_count(schema: SchemaDefinition) -> int:
    return sum(1 for f in schema.fields.values() if f.relation is not None)


@app.command(name="list")
def schema_list_cmd() -> None:
    """List loaded schemas."""
    from docstore.cli import state

    rows = [
        [s.name, len(s.fields), _relation_count(s), "yes" if s.timestamps else "no"]
        for s in _load()
    ]
    if not rows and not state.json_output:
        print("No schemas found.")
        return
    print_table(
        ["collection", "fields", "relations", "timestamps"], rows, json_mode=state.json_output
    )


@app.command(name="show")
def schema_show_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    fmt: str = typer.Option("yaml", "--format", help="Output format: yaml or json"),
) -> None:
    """Show one schema as YAML or JSON."""
    from docstore.cli import state

    if fmt not in ("yaml", "json"):
        print_error("--format must be 'yaml' or 'json'")
        raise typer.Exit(ec.USAGE_ERROR)

    by_name = {s.name: s for s in _load()}
    if collection not in by_name:
        print_error(f"Schema '{collection}' not found")
        raise typer.Exit(ec.NOT_FOUND)

    data: dict[str, Any] = by_name[collection].describe()
    if fmt == "json" or state.json_output:
        print(json.dumps(data, indent=2, default=str, ensure_ascii=False))
    else:
        print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
