"""docstore info: show storage status and high-level metadata."""

from __future__ import annotations

import os
from typing import Any

import typer

from docstore.cli import _exitcodes as ec
from docstore.cli._output import print_error, print_object
from docstore.cli._storage import open_database
from docstore.storage import parse_storage_target


def info_cmd() -> None:
    """Show storage backend, collection counts, and registered schemas."""
    from docstore.cli import state

    target = parse_storage_target(state.storage_uri)
    if target.backend == "sqlite" and target.path not in (None, ":memory:"):
        if not os.path.exists(str(target.path)):
            print_error(f"Database not found: {target.path}")
            raise typer.Exit(ec.DATABASE_ERROR)

    db = open_database()
    try:
        summary = db.info()
    finally:
        db.close()

    data: dict[str, Any] = {
        "storage_uri": state.storage_uri,
        "storage_key": summary["storage_key"],
        **{f"storage_{k}": v for k, v in summary["storage"].items()},
        "collections": summary["collections"],
        "schemas": summary["schemas"],
    }
    if target.backend == "sqlite" and target.path and os.path.exists(target.path):
        data["file_size_bytes"] = os.path.getsize(target.path)
    print_object(data, json_mode=state.json_output)
