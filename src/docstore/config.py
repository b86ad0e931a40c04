"""Configuration for docstore."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DocstoreConfig:
    """Configuration for a docstore database."""

    storage_key: str = "docstore"
    default_page: int = 1
    default_page_limit: int = 10
    max_expand_depth: int = 5
    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_request_timeout_s: float = 10.0
    log_level: str = "WARNING"
    log_format: str = "console"
