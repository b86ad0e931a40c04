"""S3 storage adapter: one JSON object per storage key."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from docstore.config import DocstoreConfig
from docstore.errors import StorageBackendError
from docstore.logging import get_logger
from docstore.storage import Collections, _decode_collections, _encode_collections

logger = get_logger(__name__)


class S3Storage:
    """Stores each key's collections map at ``<prefix>/<key>.json`` in a bucket."""

    def __init__(
        self,
        *,
        bucket: str,
        prefix: str = "",
        config: DocstoreConfig | None = None,
        client: Any | None = None,
    ) -> None:
        cfg = config or DocstoreConfig()
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        if client is None:
            session = boto3.Session(region_name=cfg.s3_region)
            client = session.client(
                "s3",
                region_name=cfg.s3_region,
                endpoint_url=cfg.s3_endpoint_url,
                config=BotoConfig(
                    connect_timeout=cfg.s3_request_timeout_s,
                    read_timeout=cfg.s3_request_timeout_s,
                    retries={"max_attempts": 5, "mode": "standard"},
                ),
            )
        self._s3 = client

    # --- Key/object helpers ---

    def _k(self, key: str) -> str:
        name = f"{key}.json"
        return f"{self.prefix}/{name}" if self.prefix else name

    def _is_not_found(self, err: Exception) -> bool:
        if isinstance(err, ClientError):
            code = err.response.get("Error", {}).get("Code", "")
            return code in {"NoSuchKey", "404", "NotFound"}
        return False

    def _list_keys(self) -> list[str]:
        keys: list[str] = []
        list_prefix = f"{self.prefix}/" if self.prefix else ""
        token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"Bucket": self.bucket, "Prefix": list_prefix}
            if token is not None:
                kwargs["ContinuationToken"] = token
            resp = self._s3.list_objects_v2(**kwargs)
            for item in resp.get("Contents", []):
                name = item["Key"]
                rest = name[len(list_prefix) :]
                if "/" not in rest and rest.endswith(".json"):
                    keys.append(name)
            if not resp.get("IsTruncated"):
                return keys
            token = resp.get("NextContinuationToken")

    # --- Adapter contract ---

    def save(self, key: str, collections: Collections) -> None:
        body = _encode_collections(collections).encode("utf-8")
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=self._k(key),
                Body=body,
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("s3_save_failed", bucket=self.bucket, key=self._k(key), error=str(e))
            raise StorageBackendError("save", f"s3://{self.bucket}/{self._k(key)}: {e}") from e

    def load(self, key: str) -> Collections | None:
        try:
            resp = self._s3.get_object(Bucket=self.bucket, Key=self._k(key))
            body = resp["Body"].read()
        except (ClientError, BotoCoreError) as e:
            if self._is_not_found(e):
                return None
            raise StorageBackendError("load", f"s3://{self.bucket}/{self._k(key)}: {e}") from e
        return _decode_collections(body, f"s3://{self.bucket}/{self._k(key)}")

    def remove(self, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=self._k(key))
        except (ClientError, BotoCoreError) as e:
            if self._is_not_found(e):
                return
            raise StorageBackendError("remove", f"s3://{self.bucket}/{self._k(key)}: {e}") from e

    def clear(self) -> None:
        try:
            for name in self._list_keys():
                self._s3.delete_object(Bucket=self.bucket, Key=name)
        except (ClientError, BotoCoreError) as e:
            raise StorageBackendError("clear", f"s3://{self.bucket}/{self.prefix}: {e}") from e

    def has(self, key: str) -> bool:
        try:
            self._s3.head_object(Bucket=self.bucket, Key=self._k(key))
        except (ClientError, BotoCoreError) as e:
            if self._is_not_found(e):
                return False
            raise StorageBackendError("has", f"s3://{self.bucket}/{self._k(key)}: {e}") from e
        return True

    def storage_info(self) -> dict[str, Any]:
        return {"backend": "s3", "bucket": self.bucket, "prefix": self.prefix}
