"""
Storage Services Package

Provides the abstract collection store interface and the embedded,
file-backed implementation used when no external database is available.
"""

from src.services.storage.interface import (
    CollectionStoreInterface,
    DuplicateError,
    ImmutableRecordError,
    InvalidRecordError,
    NotFoundError,
    PersistFailedError,
    RecordInUseError,
    SnapshotDecodeError,
    StorageError,
    StoreUnavailableError,
)
from src.services.storage.codec import decode, encode
from src.services.storage.file_store import FileCollectionStore, open_store
from src.services.storage.refresh import RefreshScheduler

__all__ = [
    # Interfaces
    "CollectionStoreInterface",
    # Exceptions
    "DuplicateError",
    "ImmutableRecordError",
    "InvalidRecordError",
    "NotFoundError",
    "PersistFailedError",
    "RecordInUseError",
    "SnapshotDecodeError",
    "StorageError",
    "StoreUnavailableError",
    # Snapshot codec
    "decode",
    "encode",
    # File-backed implementation
    "FileCollectionStore",
    "open_store",
    "RefreshScheduler",
]
