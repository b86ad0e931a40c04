"""CLI helpers for opening a database from global CLI state."""

from __future__ import annotations

import os

import typer

from docstore.cli import _exitcodes as ec
from docstore.cli._loader import load_schemas
from docstore.cli._output import print_error
from docstore.config import DocstoreConfig
from docstore.database import Database


def _max_expand_depth() -> int:
    raw = os.getenv("DOCSTORE_MAX_EXPAND_DEPTH", "5")
    try:
        return int(raw)
    except ValueError:
        print_error(f"DOCSTORE_MAX_EXPAND_DEPTH must be an integer, got {raw!r}")
        raise typer.Exit(ec.USAGE_ERROR)


def config_from_env() -> DocstoreConfig:
    """Build runtime config from CLI state and environment defaults."""
    from docstore.cli import state

    return DocstoreConfig(
        storage_key=state.key,
        s3_region=os.getenv("DOCSTORE_S3_REGION"),
        s3_endpoint_url=os.getenv("DOCSTORE_S3_ENDPOINT_URL"),
        max_expand_depth=_max_expand_depth(),
        log_level=state.log_level,
        log_format=state.log_format,
    )


def has_schema_source() -> bool:
    from docstore.cli import state

    return bool(state.schemas or state.schemas_path)


def open_database() -> Database:
    """Open the database selected by --storage-uri, with any --schemas loaded.

    Failures are reported and turned into CLI exit codes.
    """
    from docstore.cli import state

    try:
        schemas = load_schemas(state.schemas, state.schemas_path) if has_schema_source() else []
    except Exception as e:
        print_error(f"Failed to load schemas: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    config = config_from_env()
    try:
        return Database.open(state.storage_uri, config=config, schemas=schemas)
    except Exception as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.DATABASE_ERROR)
