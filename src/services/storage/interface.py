"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for collection storage.
This allows us to:
1. Back users/transactions/categories with the embedded file store
   when no external database is available
2. Swap in a full document database later without touching callers
3. Keep the HTTP layer decoupled from how records are persisted

The interface is intentionally simple - no query language, no indexes.
Just CRUD over named collections of schemaless records.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from src.models.record import Record


RecordPredicate = Callable[[Record], bool]
RecordList = list[Record]


class CollectionStoreInterface(ABC):
    """
    Abstract interface for collection storage operations.

    All operations are synchronous. Records handed out are copies;
    mutating them never affects stored state.
    """

    @abstractmethod
    def list(
        self,
        collection: str,
        predicate: Optional[RecordPredicate] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        include_secrets: bool = False,
    ) -> RecordList:
        """
        List records in a collection.

        Args:
            collection: Collection name
            predicate: Optional filter applied to each record
            limit: Maximum number of results
            offset: Number of matching results to skip
            include_secrets: Privileged; keep password hashes in user records

        Raises:
            NotFoundError: If the collection doesn't exist
        """
        pass

    @abstractmethod
    def get(
        self,
        collection: str,
        record_id: str,
        include_secrets: bool = False,
    ) -> Record:
        """
        Retrieve a record by its identifier.

        Raises:
            NotFoundError: If the collection or record doesn't exist
        """
        pass

    @abstractmethod
    def find_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
        include_secrets: bool = False,
    ) -> Optional[Record]:
        """
        Find the first record whose ``field`` equals ``value``.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    def insert(self, collection: str, fields: dict[str, Any]) -> Record:
        """
        Insert a new record.

        Returns:
            The stored record, with identifier and timestamps

        Raises:
            DuplicateError: If a uniqueness constraint is violated
            PersistFailedError: If the snapshot write fails
        """
        pass

    @abstractmethod
    def update(
        self,
        collection: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> Record:
        """
        Merge fields into an existing record.

        Raises:
            NotFoundError: If the record doesn't exist
            ImmutableRecordError: If the record is protected
            PersistFailedError: If the snapshot write fails
        """
        pass

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        """
        Delete a record by identifier.

        Returns:
            True if a record was removed, False if none existed
        """
        pass

    @abstractmethod
    def ensure_fresh(self, force: bool = False) -> bool:
        """
        Reload from the durable source if in-memory state may be stale.

        Returns:
            True if a reload happened
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Collection or record not found in storage."""

    def __init__(self, collection: str, record_id: Optional[str] = None):
        self.collection = collection
        self.record_id = record_id
        if record_id is None:
            message = f"Unknown collection: {collection}"
        else:
            message = f"Record not found in {collection}: {record_id}"
        super().__init__(message)


class DuplicateError(StorageError):
    """Attempted to insert a duplicate value for a unique field."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value}")


class ImmutableRecordError(StorageError):
    """Attempted to modify or remove a protected default record."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"Record in {collection} is a protected default: {record_id}")


class RecordInUseError(StorageError):
    """Attempted to remove a record other records still reference."""

    def __init__(self, collection: str, record_id: str, referenced_by: str):
        self.collection = collection
        self.record_id = record_id
        self.referenced_by = referenced_by
        super().__init__(
            f"Record in {collection} is still referenced by {referenced_by}: {record_id}"
        )


class InvalidRecordError(StorageError):
    """Supplied fields cannot be stored."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class SnapshotDecodeError(StorageError):
    """Snapshot exists but cannot be parsed."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.reason = "corrupt"
        self.path = path
        super().__init__(message)


class StoreUnavailableError(StorageError):
    """Could not read the snapshot; last good in-memory state stays active."""
    pass


class PersistFailedError(StorageError):
    """Snapshot write failed; the in-memory mutation is retained for retry."""
    pass
