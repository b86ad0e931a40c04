"""Storage adapters persisting a store's collections map under a key."""

from __future__ import annotations

import copy
import json
import os
import sqlite3
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlparse

from docstore.config import DocstoreConfig
from docstore.errors import StorageBackendError
from docstore.logging import get_logger
from docstore.values import Record

logger = get_logger(__name__)

Collections = dict[str, list[Record]]


@runtime_checkable
class StorageAdapter(Protocol):
    """Persistence contract for a store's full collections map."""

    def save(self, key: str, collections: Collections) -> None: ...

    def load(self, key: str) -> Collections | None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def has(self, key: str) -> bool: ...


def _decode_collections(raw: str | bytes, source: str) -> Collections:
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise StorageBackendError("load", f"Corrupt data in {source}: {e}") from e
    if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
        raise StorageBackendError(
            "load", f"Unexpected layout in {source}: expected an object of arrays"
        )
    return data


def _encode_collections(collections: Collections) -> str:
    return json.dumps(collections, ensure_ascii=False)


class MemoryStorage:
    """Keeps snapshots in process memory; nothing survives the process."""

    def __init__(self) -> None:
        self._data: dict[str, Collections] = {}

    def save(self, key: str, collections: Collections) -> None:
        self._data[key] = copy.deepcopy(collections)

    def load(self, key: str) -> Collections | None:
        stored = self._data.get(key)
        return copy.deepcopy(stored) if stored is not None else None

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def has(self, key: str) -> bool:
        return key in self._data

    def storage_info(self) -> dict[str, Any]:
        return {"backend": "memory", "keys": sorted(self._data)}


class JsonFileStorage:
    """One ``<key>.json`` file per key inside a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageBackendError("resolve_key", f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def save(self, key: str, collections: Collections) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(_encode_collections(collections))
            os.replace(tmp_name, path)
        except OSError as e:
            raise StorageBackendError("save", f"Cannot write {path}: {e}") from e
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def load(self, key: str) -> Collections | None:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageBackendError("load", f"Cannot read {path}: {e}") from e
        return _decode_collections(raw, str(path))

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageBackendError("remove", f"Cannot delete {path}: {e}") from e

    def clear(self) -> None:
        for path in self.directory.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                raise StorageBackendError("clear", f"Cannot delete {path}: {e}") from e

    def has(self, key: str) -> bool:
        return self._path(key).exists()

    def storage_info(self) -> dict[str, Any]:
        return {"backend": "file", "directory": str(self.directory)}


class SqliteStorage:
    """SQLite-backed key/value table of JSON snapshots."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._create_tables()
        except sqlite3.Error as e:
            raise StorageBackendError("open", f"Cannot open {db_path}: {e}") from e

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                data_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
        """)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def save(self, key: str, collections: Collections) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO snapshots (key, data_json, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET data_json = excluded.data_json, "
                    "updated_at = excluded.updated_at",
                    (key, _encode_collections(collections), now),
                )
        except sqlite3.Error as e:
            raise StorageBackendError("save", str(e)) from e

    def load(self, key: str) -> Collections | None:
        try:
            row = self._conn.execute(
                "SELECT data_json FROM snapshots WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageBackendError("load", str(e)) from e
        if row is None:
            return None
        return _decode_collections(row[0], f"{self.db_path}#{key}")

    def remove(self, key: str) -> None:
        try:
            with self._conn:
                self._conn.execute("DELETE FROM snapshots WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageBackendError("remove", str(e)) from e

    def clear(self) -> None:
        try:
            with self._conn:
                self._conn.execute("DELETE FROM snapshots")
        except sqlite3.Error as e:
            raise StorageBackendError("clear", str(e)) from e

    def has(self, key: str) -> bool:
        try:
            row = self._conn.execute(
                "SELECT 1 FROM snapshots WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageBackendError("has", str(e)) from e
        return row is not None

    def storage_info(self) -> dict[str, Any]:
        count = self._conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()[0]
        return {"backend": "sqlite", "db_path": self.db_path, "keys": count}


@dataclass(frozen=True)
class StorageTarget:
    """Resolved storage target from a storage URI."""

    backend: str
    uri: str
    path: str | None = None
    bucket: str | None = None
    prefix: str | None = None


def _uri_path(parsed: Any, *, relative: bool = False) -> str:
    path = parsed.path
    if parsed.netloc:
        return f"{parsed.netloc}{path}"
    if relative and path.startswith("/"):
        # sqlite:///rel/path -> rel/path, sqlite:////abs/path -> /abs/path
        return path[1:]
    if path.startswith("//"):
        return path[1:]
    return path


def parse_storage_target(storage_uri: str | None = None) -> StorageTarget:
    """Resolve a storage URI; no URI means in-memory storage."""
    if not storage_uri:
        return StorageTarget(backend="memory", uri="memory://")

    parsed = urlparse(storage_uri)

    if parsed.scheme == "memory":
        return StorageTarget(backend="memory", uri=storage_uri)

    if parsed.scheme == "file":
        directory = _uri_path(parsed)
        if not directory:
            raise StorageBackendError("parse_storage_uri", f"Invalid file URI: {storage_uri}")
        return StorageTarget(backend="file", uri=storage_uri, path=directory)

    if parsed.scheme == "sqlite":
        sqlite_path = _uri_path(parsed, relative=True)
        if not sqlite_path:
            raise StorageBackendError("parse_storage_uri", f"Invalid sqlite URI: {storage_uri}")
        return StorageTarget(backend="sqlite", uri=storage_uri, path=sqlite_path)

    if parsed.scheme == "s3":
        bucket = parsed.netloc
        prefix = parsed.path.lstrip("/").rstrip("/")
        if not bucket:
            raise StorageBackendError("parse_storage_uri", f"Invalid s3 URI: {storage_uri}")
        return StorageTarget(backend="s3", uri=storage_uri, bucket=bucket, prefix=prefix)

    raise StorageBackendError(
        "parse_storage_uri",
        f"Unsupported storage URI scheme '{parsed.scheme}' for '{storage_uri}'",
    )


def open_storage(
    storage_uri: str | None = None,
    *,
    config: DocstoreConfig | None = None,
) -> StorageAdapter:
    """Open the storage adapter a URI points at."""
    target = parse_storage_target(storage_uri)
    logger.debug("storage_open", backend=target.backend, uri=target.uri)

    if target.backend == "memory":
        return MemoryStorage()
    if target.backend == "file":
        assert target.path is not None
        return JsonFileStorage(target.path)
    if target.backend == "sqlite":
        assert target.path is not None
        return SqliteStorage(target.path)
    if target.backend == "s3":
        from docstore.storage_s3 import S3Storage

        assert target.bucket is not None
        return S3Storage(
            bucket=target.bucket,
            prefix=target.prefix or "",
            config=config or DocstoreConfig(),
        )
    raise StorageBackendError("open_storage", f"Unsupported backend '{target.backend}'")


__all__ = [
    "Collections",
    "StorageAdapter",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "StorageTarget",
    "parse_storage_target",
    "open_storage",
]
