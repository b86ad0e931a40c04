"""docstore query/get/add/update/delete: record-level commands."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from docstore.cli import _exitcodes as ec
from docstore.cli._output import print_error, print_json, print_object, print_records
from docstore.cli._storage import open_database
from docstore.database import Database
from docstore.errors import (
    DocstoreError,
    DuplicateIdError,
    InvalidCursorError,
    ReferentialIntegrityError,
    StorageBackendError,
    ValidationError,
)
from docstore.values import coerce_id


def _parse_params(params: list[str] | None) -> dict[str, str]:
    """Parse repeated KEY=VALUE options into a flat mapping."""
    parsed: dict[str, str] = {}
    for raw in params or []:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            print_error(f"Invalid --param '{raw}': expected KEY=VALUE")
            raise typer.Exit(ec.USAGE_ERROR)
        parsed[key] = value
    return parsed


def _parse_data(data: str) -> dict[str, Any]:
    try:
        parsed = json.loads(data)
    except ValueError as e:
        print_error(f"Invalid JSON in --data: {e}")
        raise typer.Exit(ec.USAGE_ERROR)
    if not isinstance(parsed, dict):
        print_error("--data must be a JSON object")
        raise typer.Exit(ec.USAGE_ERROR)
    return parsed


def _fail(e: DocstoreError) -> typer.Exit:
    """Report a docstore error and pick the matching exit code."""
    if isinstance(e, ValidationError):
        print_error(f"Validation failed for '{e.collection}'")
        for err in e.errors:
            print_error(f"  {err.field}: {err.message}")
        return typer.Exit(ec.VALIDATION_FAILED)
    print_error(str(e))
    if isinstance(e, (ReferentialIntegrityError, DuplicateIdError)):
        return typer.Exit(ec.INTEGRITY_CONFLICT)
    if isinstance(e, StorageBackendError):
        return typer.Exit(ec.DATABASE_ERROR)
    if isinstance(e, InvalidCursorError):
        return typer.Exit(ec.USAGE_ERROR)
    return typer.Exit(ec.GENERAL_ERROR)


def _not_found(collection: str, record_id: Any) -> typer.Exit:
    print_error(f"No record with id {record_id!r} in '{collection}'")
    return typer.Exit(ec.NOT_FOUND)


def query_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    params: Optional[list[str]] = typer.Option(
        None,
        "--param",
        "-p",
        help="KEY=VALUE query parameter, e.g. precio_gte=100 or _sort=nombre (repeatable)",
    ),
) -> None:
    """Query a collection with filter, sort, pagination, and search parameters."""
    from docstore.cli import state

    json_mode = state.json_output
    query_params = _parse_params(params)
    db = open_database()

    try:
        result = db.find_params(collection, query_params)
    except DocstoreError as e:
        raise _fail(e)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    finally:
        db.close()

    if json_mode:
        print_json({"data": result.data, "pagination": result.pagination.to_dict()})
        return

    if not result.data:
        print("No records found.")
    else:
        print_records(result.data)
    meta = result.pagination
    summary = f"{len(result.data)} of {result.total} record(s)"
    if meta.current_page is not None:
        summary += f", page {meta.current_page}/{meta.page_count}"
    if meta.next_cursor is not None:
        summary += f", next cursor {meta.next_cursor}"
    print(summary)


def get_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    record_id: str = typer.Argument(..., help="Record id"),
    expand: bool = typer.Option(False, "--expand", help="Expand relational fields"),
    depth: int = typer.Option(1, "--depth", min=1, help="Expansion depth"),
) -> None:
    """Show one record."""
    from docstore.cli import state

    db = open_database()
    rid = coerce_id(record_id)
    try:
        record = db.get(collection, rid, expand=expand, depth=depth)
    except DocstoreError as e:
        raise _fail(e)
    finally:
        db.close()

    if record is None:
        raise _not_found(collection, rid)
    print_object(record, json_mode=state.json_output)


def _write(db: Database, action: str, *args: Any) -> Any:
    try:
        return getattr(db, action)(*args)
    except DocstoreError as e:
        raise _fail(e)
    finally:
        db.close()


def add_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    data: str = typer.Option(..., "--data", "-d", help="Record as a JSON object"),
) -> None:
    """Create a record (validated when the collection has a schema)."""
    from docstore.cli import state

    payload = _parse_data(data)
    record = _write(open_database(), "create", collection, payload)
    print_object(record, json_mode=state.json_output)


def update_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    record_id: str = typer.Argument(..., help="Record id"),
    data: str = typer.Option(..., "--data", "-d", help="Changes as a JSON object"),
    replace: bool = typer.Option(
        False, "--replace", help="Replace the whole record instead of merging"
    ),
) -> None:
    """Update a record; an 'id' in the data renames it and propagates to references."""
    from docstore.cli import state

    payload = _parse_data(data)
    rid = coerce_id(record_id)
    record = _write(open_database(), "replace" if replace else "patch", collection, rid, payload)
    if record is None:
        raise _not_found(collection, rid)
    print_object(record, json_mode=state.json_output)


def delete_cmd(
    collection: str = typer.Argument(..., help="Collection name"),
    record_id: str = typer.Argument(..., help="Record id"),
) -> None:
    """Delete a record, applying onDelete policies of related collections."""
    from docstore.cli import state

    rid = coerce_id(record_id)
    deleted = _write(open_database(), "delete", collection, rid)
    if not deleted:
        raise _not_found(collection, rid)
    if state.json_output:
        print_json({"deleted": True, "collection": collection, "id": rid})
    else:
        print(f"Deleted {collection} {rid}")
