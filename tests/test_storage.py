"""Tests for storage adapters and storage URI resolution."""

from __future__ import annotations

import pytest

from docstore.config import DocstoreConfig
from docstore.errors import StorageBackendError
from docstore.storage import (
    JsonFileStorage,
    MemoryStorage,
    SqliteStorage,
    StorageAdapter,
    StorageTarget,
    open_storage,
    parse_storage_target,
)
from docstore.storage_s3 import S3Storage

SNAPSHOT = {
    "usuarios": [{"id": 1, "nombre": "Ana", "tags": ["a"], "perfil": {"edad": 30}}],
    "vacia": [],
}


@pytest.fixture(params=["memory", "file", "sqlite"])
def adapter(request, tmp_path):
    if request.param == "memory":
        yield MemoryStorage()
    elif request.param == "file":
        yield JsonFileStorage(tmp_path / "datos")
    else:
        storage = SqliteStorage(str(tmp_path / "datos.db"))
        yield storage
        storage.close()


class TestAdapterContract:
    def test_satisfies_protocol(self, adapter):
        assert isinstance(adapter, StorageAdapter)

    def test_round_trip(self, adapter):
        adapter.save("docstore", SNAPSHOT)
        assert adapter.load("docstore") == SNAPSHOT

    def test_missing_key(self, adapter):
        assert adapter.load("nada") is None
        assert adapter.has("nada") is False

    def test_overwrite(self, adapter):
        adapter.save("docstore", SNAPSHOT)
        adapter.save("docstore", {"otra": []})
        assert adapter.load("docstore") == {"otra": []}

    def test_keys_are_independent(self, adapter):
        adapter.save("a", {"x": []})
        adapter.save("b", {"y": []})
        adapter.remove("a")
        assert not adapter.has("a")
        assert adapter.load("b") == {"y": []}

    def test_remove_missing_is_noop(self, adapter):
        adapter.remove("nada")

    def test_clear(self, adapter):
        adapter.save("a", {})
        adapter.save("b", {})
        adapter.clear()
        assert not adapter.has("a")
        assert not adapter.has("b")

    def test_saved_snapshot_is_detached(self, adapter):
        data = {"notas": [{"id": 1}]}
        adapter.save("docstore", data)
        data["notas"].append({"id": 2})
        assert adapter.load("docstore") == {"notas": [{"id": 1}]}


class TestJsonFileStorage:
    def test_one_file_per_key(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("tienda", SNAPSHOT)
        assert (tmp_path / "tienda.json").exists()
        assert not list(tmp_path.glob("*.tmp"))

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "docstore.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageBackendError) as exc_info:
            JsonFileStorage(tmp_path).load("docstore")
        assert exc_info.value.operation == "load"

    def test_unexpected_layout(self, tmp_path):
        (tmp_path / "docstore.json").write_text('{"notas": 1}', encoding="utf-8")
        with pytest.raises(StorageBackendError, match="expected an object of arrays"):
            JsonFileStorage(tmp_path).load("docstore")

    @pytest.mark.parametrize("key", ["", "../x", "a/b", ".."])
    def test_invalid_keys(self, tmp_path, key):
        with pytest.raises(StorageBackendError):
            JsonFileStorage(tmp_path).save(key, {})

    def test_failed_encode_leaves_no_temp_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.save("k", {"usuarios": [{"id": 1}]})
        with pytest.raises(TypeError):
            storage.save("k", {"usuarios": [{"id": 2, "tags": {1, 2}}]})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]
        assert storage.load("k") == {"usuarios": [{"id": 1}]}


class TestSqliteStorage:
    def test_persists_across_connections(self, tmp_path):
        path = str(tmp_path / "datos.db")
        first = SqliteStorage(path)
        first.save("docstore", SNAPSHOT)
        first.close()
        second = SqliteStorage(path)
        assert second.load("docstore") == SNAPSHOT
        assert second.storage_info()["keys"] == 1
        second.close()

    def test_in_memory(self):
        storage = SqliteStorage(":memory:")
        storage.save("docstore", SNAPSHOT)
        assert storage.has("docstore")
        storage.close()


class TestParseStorageTarget:
    def test_default_is_memory(self):
        assert parse_storage_target() == StorageTarget(backend="memory", uri="memory://")
        assert parse_storage_target("memory://").backend == "memory"

    @pytest.mark.parametrize(
        "uri, path",
        [
            ("sqlite:///docstore.db", "docstore.db"),
            ("sqlite:////var/data/docstore.db", "/var/data/docstore.db"),
            ("sqlite:///:memory:", ":memory:"),
            ("sqlite://data/docstore.db", "data/docstore.db"),
        ],
    )
    def test_sqlite(self, uri, path):
        target = parse_storage_target(uri)
        assert target.backend == "sqlite"
        assert target.path == path

    @pytest.mark.parametrize(
        "uri, path",
        [("file:///var/data", "/var/data"), ("file://data", "data")],
    )
    def test_file(self, uri, path):
        target = parse_storage_target(uri)
        assert target.backend == "file"
        assert target.path == path

    def test_s3(self):
        target = parse_storage_target("s3://tienda/entornos/prod/")
        assert target.backend == "s3"
        assert target.bucket == "tienda"
        assert target.prefix == "entornos/prod"

    @pytest.mark.parametrize("uri", ["s3:///prefix", "sqlite://", "file://", "ftp://host/x"])
    def test_invalid(self, uri):
        with pytest.raises(StorageBackendError) as exc_info:
            parse_storage_target(uri)
        assert exc_info.value.operation == "parse_storage_uri"


class TestOpenStorage:
    def test_backends(self, tmp_path):
        assert isinstance(open_storage(None), MemoryStorage)
        assert isinstance(open_storage(f"file://{tmp_path}"), JsonFileStorage)
        sqlite = open_storage(f"sqlite:///{tmp_path / 'x.db'}")
        assert isinstance(sqlite, SqliteStorage)
        assert sqlite.db_path == str(tmp_path / "x.db")
        sqlite.close()

    def test_s3_uses_config(self):
        cfg = DocstoreConfig(s3_region="eu-west-1", s3_endpoint_url="http://localhost:9000")
        storage = open_storage("s3://tienda/datos", config=cfg)
        assert isinstance(storage, S3Storage)
        assert storage.bucket == "tienda"
        assert storage.prefix == "datos"
