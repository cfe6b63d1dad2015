"""Storage capability interface, endpoint parsing and construction entry points."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import urlparse

from certstore.config import CertStoreConfig
from certstore.errors import CertStoreError, InvalidConfigError
from certstore.types import KeyInfo

if TYPE_CHECKING:
    from certstore.storage_sqlite import SqliteStorage

logger = logging.getLogger(__name__)


@dataclass
class StorageTarget:
    """Resolved storage target from a path or URI endpoint."""

    backend: str
    uri: str
    db_path: str


def parse_storage_target(endpoint: str) -> StorageTarget:
    """Resolve a bare SQLite file path or a ``sqlite:///`` URI."""
    if not endpoint or not endpoint.strip():
        raise InvalidConfigError("connection endpoint must not be empty")

    parsed = urlparse(endpoint)
    if not parsed.scheme or (len(parsed.scheme) == 1 and endpoint[1:3] in (":\\", ":/")):
        # Plain path (a one-letter "scheme" is a Windows drive).
        db_path = endpoint
        uri = f"sqlite:///{os.path.abspath(endpoint)}"
    elif parsed.scheme == "sqlite":
        db_path = parsed.path
        if parsed.netloc:
            db_path = f"{parsed.netloc}{db_path}"
        elif db_path.startswith("//"):
            # sqlite:////abs/path -> /abs/path
            db_path = db_path[1:]
        if not db_path or db_path == "/":
            raise InvalidConfigError(f"Invalid sqlite URI: {endpoint}")
        uri = endpoint
    else:
        raise InvalidConfigError(f"Unsupported backend '{parsed.scheme}' in endpoint {endpoint}")

    if db_path in (":memory:", "/:memory:") or "mode=memory" in db_path:
        raise InvalidConfigError(
            "in-memory databases cannot be shared between pooled connections"
        )
    return StorageTarget(backend="sqlite", uri=uri, db_path=db_path)


@runtime_checkable
class StorageProtocol(Protocol):
    """Capability interface consumed by host adaptation layers."""

    def acquire(
        self, key: str, lease: float | str | None = None, timeout: float | None = None
    ) -> None: ...

    def release(self, key: str) -> None: ...

    def put(self, key: str, value: bytes) -> None: ...

    def get(self, key: str) -> bytes: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def list_keys(self, prefix: str, recursive: bool = False) -> list[str]: ...

    def stat(self, key: str) -> KeyInfo: ...

    def close(self) -> None: ...


def open_storage(config: CertStoreConfig) -> SqliteStorage:
    """Build a storage instance from a validated config without probing the backend."""
    from certstore.storage_sqlite import SqliteStorage

    return SqliteStorage(config)


def connect(
    endpoint: str,
    *,
    query_timeout: str | float | None = None,
    lock_timeout: str | float | None = None,
    pool_size: int | None = None,
    create_tables: bool = True,
) -> SqliteStorage:
    """Validate options, probe the backend and return a ready storage instance.

    Durations accept strings such as ``"3s"`` or ``"1m"`` or numbers of
    seconds. The probe runs under a fixed connect timeout independent of
    ``query_timeout``; if it fails nothing is returned and the pool is closed.
    """
    options: dict[str, Any] = {
        "connection_string": endpoint,
        "query_timeout": query_timeout,
        "lock_timeout": lock_timeout,
        "pool_size": pool_size,
    }
    config = CertStoreConfig.from_options(options)
    config.create_tables = create_tables
    storage = open_storage(config)
    try:
        storage.probe()
    except CertStoreError:
        storage.close()
        raise
    logger.info("Connected to %s", storage.uri)
    return storage


__all__ = [
    "StorageProtocol",
    "StorageTarget",
    "connect",
    "open_storage",
    "parse_storage_target",
]
