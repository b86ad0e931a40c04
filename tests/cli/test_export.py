"""Tests for docstore export command."""

import json

from tests.cli.conftest import invoke


def test_export_stdout(runner, seeded_uri):
    result = invoke(runner, ["export"], seeded_uri)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert set(data) == {"usuarios", "pedidos", "productos"}
    assert len(data["productos"]) == 5


def test_export_json_file(runner, seeded_uri, tmp_path):
    out = tmp_path / "backup.json"
    result = invoke(runner, ["export", "--output", str(out)], seeded_uri)
    assert result.exit_code == 0
    assert f"Exported 10 record(s) from 3 collection(s) to {out}" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["usuarios"][0]["nombre"] == "Ana"


def test_export_csv_from_extension(runner, seeded_uri, tmp_path):
    out = tmp_path / "backup.csv"
    result = invoke(runner, ["export", "-o", str(out)], seeded_uri)
    assert result.exit_code == 0
    text = out.read_text(encoding="utf-8")
    assert text.startswith("# Collection: usuarios\nid,nombre,email,rol\n")
    assert "# Collection: productos" in text


def test_export_selected_collection(runner, seeded_uri):
    result = invoke(runner, ["export", "--collection", "pedidos"], seeded_uri)
    assert list(json.loads(result.stdout)) == ["pedidos"]


def test_export_unknown_collection(runner, seeded_uri):
    result = invoke(runner, ["export", "--collection", "nada"], seeded_uri)
    assert result.exit_code == 4
    assert "Unknown collection(s): nada" in result.output


def test_export_bad_format(runner, seeded_uri):
    result = invoke(runner, ["export", "--format", "xml"], seeded_uri)
    assert result.exit_code == 2
