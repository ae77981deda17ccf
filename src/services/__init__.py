"""Services package."""

from src.services.storage import (
    CollectionStoreInterface,
    DuplicateError,
    FileCollectionStore,
    ImmutableRecordError,
    NotFoundError,
    PersistFailedError,
    RefreshScheduler,
    StorageError,
    StoreUnavailableError,
)
from src.services.auth import (
    authenticate_user,
    hash_password,
    verify_password,
)

__all__ = [
    # Storage services
    "CollectionStoreInterface",
    "DuplicateError",
    "FileCollectionStore",
    "ImmutableRecordError",
    "NotFoundError",
    "PersistFailedError",
    "RefreshScheduler",
    "StorageError",
    "StoreUnavailableError",
    # Auth services
    "authenticate_user",
    "hash_password",
    "verify_password",
]
