"""certstore: shared key-value storage with lease locks for certificate management."""

__version__ = "0.1.0"

from certstore.config import CertStoreConfig, parse_duration
from certstore.errors import (
    BackendError,
    CertStoreError,
    ErrorKind,
    InvalidConfigError,
    LockedError,
    NotFoundError,
    QueryTimeoutError,
    UnsupportedError,
)
from certstore.storage import StorageProtocol, connect, open_storage, parse_storage_target
from certstore.storage_sqlite import SqliteStorage
from certstore.types import KeyInfo, LeaseInfo

__all__ = [
    "__version__",
    "connect",
    "open_storage",
    "parse_storage_target",
    "parse_duration",
    "CertStoreConfig",
    "StorageProtocol",
    "SqliteStorage",
    "KeyInfo",
    "LeaseInfo",
    "ErrorKind",
    "CertStoreError",
    "NotFoundError",
    "LockedError",
    "UnsupportedError",
    "InvalidConfigError",
    "BackendError",
    "QueryTimeoutError",
]
