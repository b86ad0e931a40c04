"""Tests for docstore schema commands."""

import json

import yaml

from tests.cli.conftest import invoke


def test_schema_list(runner):
    result = invoke(runner, ["schema", "list"], schemas=True)
    assert result.exit_code == 0
    assert "usuarios" in result.output
    assert "productos" in result.output


def test_schema_list_json(runner):
    result = invoke(runner, ["--json", "schema", "list"], schemas=True)
    assert result.exit_code == 0
    rows = {row["collection"]: row for row in json.loads(result.stdout)}
    assert rows["usuarios"] == {
        "collection": "usuarios",
        "fields": 4,
        "relations": 1,
        "timestamps": "no",
    }
    assert rows["productos"]["timestamps"] == "yes"


def test_schema_show_yaml(runner):
    result = invoke(runner, ["schema", "show", "usuarios"], schemas=True)
    assert result.exit_code == 0
    data = yaml.safe_load(result.stdout)
    assert data["name"] == "usuarios"
    assert data["fields"]["email"]["validate"] == "<custom>"
    assert data["fields"]["rol"]["defaultValue"] == "usuario"
    assert data["fields"]["pedidos"]["relation"]["onDelete"] == "cascade"


def test_schema_show_json(runner):
    result = invoke(runner, ["schema", "show", "pedidos", "--format", "json"], schemas=True)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["fields"]["items"]["items"]["properties"]["cantidad"]["required"] is True


def test_schema_show_not_found(runner):
    result = invoke(runner, ["schema", "show", "nada"], schemas=True)
    assert result.exit_code == 4


def test_schema_requires_source(runner):
    result = invoke(runner, ["schema", "list"])
    assert result.exit_code == 2
    assert "--schemas" in result.output


def test_schema_bad_module(runner):
    result = invoke(runner, ["--schemas", "no_such_module_xyz", "schema", "list"])
    assert result.exit_code == 1
    assert "Failed to load schemas" in result.output
