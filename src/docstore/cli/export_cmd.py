"""docstore export: write every collection to a JSON or CSV file."""

from __future__ import annotations

from typing import Optional

import typer

from docstore import interchange
from docstore.cli import _exitcodes as ec
from docstore.cli._output import print_error
from docstore.cli._storage import open_database


def export_cmd(
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output file path (default: stdout)"
    ),
    fmt: Optional[str] = typer.Option(
        None, "--format", help="json or csv (default: from the output extension, else json)"
    ),
    collection: Optional[list[str]] = typer.Option(
        None, "--collection", help="Export only this collection (repeatable)"
    ),
) -> None:
    """Export collections as indented JSON or sectioned CSV."""
    resolved = (fmt or (interchange.format_for_path(output) if output else "json")).lower()
    if resolved not in interchange.FORMATS:
        print_error(f"--format must be one of: {', '.join(interchange.FORMATS)}")
        raise typer.Exit(ec.USAGE_ERROR)

    db = open_database()
    try:
        data = db.export()
    finally:
        db.close()

    if collection:
        missing = [c for c in collection if c not in data]
        if missing:
            print_error(f"Unknown collection(s): {', '.join(missing)}")
            raise typer.Exit(ec.NOT_FOUND)
        data = {name: data[name] for name in collection}

    text = interchange.dumps(data, resolved)
    if output is None:
        print(text)
        return

    try:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        print_error(f"Cannot write {output}: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    total = sum(len(records) for records in data.values())
    print(f"Exported {total} record(s) from {len(data)} collection(s) to {output}")
