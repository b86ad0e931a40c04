"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from docstore import Database
from docstore.cli import app

# Reuse the schemas and rows from the main conftest
from tests.conftest import PRODUCTOS, pedidos, productos, usuarios

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_uri(tmp_path):
    """Storage URI of an empty temp SQLite database."""
    return f"sqlite:///{tmp_path / 'cli_test.db'}"


@pytest.fixture
def seeded_uri(cli_uri):
    """A database holding users, their orders, and products."""
    db = Database.open(cli_uri, schemas=[usuarios, pedidos, productos])
    db.import_data(
        {
            "usuarios": [
                {"id": 1, "nombre": "Ana", "email": "ana@example.com", "rol": "admin"},
                {"id": 2, "nombre": "Luis", "email": "luis@example.com", "rol": "usuario"},
            ],
            "pedidos": [
                {"id": 1, "usuarioId": 1, "estado": "pendiente", "total": 100},
                {"id": 2, "usuarioId": 1, "estado": "enviado", "total": 250},
                {"id": 3, "usuarioId": 2, "estado": "entregado", "total": 75},
            ],
            "productos": [dict(p) for p in PRODUCTOS],
        }
    )
    db.close()
    return cli_uri


def invoke(
    runner: CliRunner,
    args: list[str],
    storage_uri: str | None = None,
    *,
    schemas: bool = False,
) -> "Result":
    """Invoke the CLI with global options placed before the subcommand."""
    prefix: list[str] = []
    if storage_uri:
        prefix += ["--storage-uri", storage_uri]
    if schemas:
        prefix += ["--schemas", "tests.conftest"]
    return runner.invoke(app, prefix + args, catch_exceptions=False)
