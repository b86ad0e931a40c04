"""docstore collections: list collections and their record counts."""

from __future__ import annotations

from docstore.cli._output import print_table
from docstore.cli._storage import open_database


def collections_cmd() -> None:
    """List stored collections with record counts and schema status."""
    from docstore.cli import state

    db = open_database()
    try:
        names = db.collections()
        rows = [
            [name, db.store.count(name), "yes" if db.schema(name) is not None else "no"]
            for name in names
        ]
    finally:
        db.close()

    if not rows and not state.json_output:
        print("No collections.")
        return
    print_table(["collection", "records", "schema"], rows, json_mode=state.json_output)
