"""docstore CLI: operator console for inspecting and editing a document store."""

from __future__ import annotations

from typing import Optional

import typer

from docstore.cli import collections, export_cmd, import_cmd, info, records, schema

app = typer.Typer(
    name="docstore",
    help="docstore CLI: inspect, query, and edit a document store.",
    no_args_is_help=True,
)

DEFAULT_STORAGE_URI = "sqlite:///docstore.db"


class _State:
    """Global CLI state shared across subcommands."""

    storage_uri: str = DEFAULT_STORAGE_URI
    key: str = "docstore"
    schemas: str | None = None
    schemas_path: str | None = None
    json_output: bool = False
    log_level: str = "WARNING"
    log_format: str = "console"


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        from docstore import __version__

        print(f"docstore {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="DOCSTORE_STORAGE_URI",
        help="Storage URI: memory://, file:///dir, sqlite:///path, s3://bucket/prefix",
    ),
    key: str = typer.Option(
        "docstore", "--key", envvar="DOCSTORE_KEY", help="Storage key of the collections map"
    ),
    schemas: Optional[str] = typer.Option(
        None, "--schemas", envvar="DOCSTORE_SCHEMAS", help="Python import path for schemas"
    ),
    schemas_path: Optional[str] = typer.Option(
        None,
        "--schemas-path",
        envvar="DOCSTORE_SCHEMAS_PATH",
        help="Filesystem path to a schemas module",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="DOCSTORE_LOG_LEVEL", help="Log level"
    ),
    log_format: str = typer.Option(
        "console", "--log-format", envvar="DOCSTORE_LOG_FORMAT", help="console or json"
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all docstore commands."""
    from docstore.config import DocstoreConfig
    from docstore.errors import StorageBackendError
    from docstore.logging import configure_logging
    from docstore.storage import parse_storage_target

    resolved_uri = storage_uri or DEFAULT_STORAGE_URI
    try:
        parse_storage_target(resolved_uri)
    except StorageBackendError as e:
        raise typer.BadParameter(str(e))

    if log_format not in ("console", "json"):
        raise typer.BadParameter("--log-format must be 'console' or 'json'")

    state.storage_uri = resolved_uri
    state.key = key
    state.schemas = schemas
    state.schemas_path = schemas_path
    state.json_output = json_output
    state.log_level = log_level
    state.log_format = log_format
    configure_logging(DocstoreConfig(log_level=log_level, log_format=log_format))

    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.add_typer(schema.app, name="schema", help="Inspect registered schemas")

app.command(name="info")(info.info_cmd)
app.command(name="collections")(collections.collections_cmd)
app.command(name="query")(records.query_cmd)
app.command(name="get")(records.get_cmd)
app.command(name="add")(records.add_cmd)
app.command(name="update")(records.update_cmd)
app.command(name="delete")(records.delete_cmd)
app.command(name="export")(export_cmd.export_cmd)
app.command(name="import")(import_cmd.import_cmd)


def main() -> None:
    """Entry point for the docstore CLI."""
    app()
