"""docstore import: replace the store's contents from a JSON or CSV file."""

from __future__ import annotations

from typing import Optional

import typer

from docstore import interchange
from docstore.cli import _exitcodes as ec
from docstore.cli._output import print_error, print_json, print_table
from docstore.cli._storage import open_database
from docstore.errors import ImportFormatError, StorageBackendError


def import_cmd(
    input_path: str = typer.Option(..., "--input", "-i", help="JSON or CSV file"),
    fmt: Optional[str] = typer.Option(
        None, "--format", help="json or csv (default: from the file extension)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be imported"),
) -> None:
    """Import collections, replacing everything currently stored."""
    from docstore.cli import state

    resolved = (fmt or interchange.format_for_path(input_path)).lower()
    if resolved not in interchange.FORMATS:
        print_error(f"--format must be one of: {', '.join(interchange.FORMATS)}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        with open(input_path, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        print_error(f"Cannot read {input_path}: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        data = interchange.loads(text, resolved)
    except ImportFormatError as e:
        print_error(str(e))
        raise typer.Exit(ec.IMPORT_FAILED)

    counts = {name: len(records) for name, records in data.items()}

    if not dry_run:
        db = open_database()
        try:
            db.import_data(data)
        except StorageBackendError as e:
            print_error(str(e))
            raise typer.Exit(ec.DATABASE_ERROR)
        finally:
            db.close()

    if state.json_output:
        print_json({"dry_run": dry_run, "collections": counts})
        return

    print_table(["collection", "records"], [[k, v] for k, v in counts.items()])
    verb = "Would import" if dry_run else "Imported"
    print(f"{verb} {sum(counts.values())} record(s) into {len(counts)} collection(s).")
