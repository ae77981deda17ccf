"""
Data Models Package

This package contains the Pydantic models used by the finance tracker store.
Everything written to the snapshot file must conform to these schemas.
"""

from src.models.record import (
    CREATED_AT_FIELD,
    DEFAULT_CATEGORIES,
    ID_FIELD,
    RECORD_FIELDS_ADAPTER,
    UPDATED_AT_FIELD,
    Collection,
    Record,
    Snapshot,
    TransactionType,
    UserRole,
    contains_non_finite,
    default_records,
    utc_timestamp,
)
from src.models.audit import (
    StoreEvent,
    StoreEventBuilder,
    StoreEventSeverity,
    StoreEventType,
)

__all__ = [
    # Record models
    "CREATED_AT_FIELD",
    "DEFAULT_CATEGORIES",
    "ID_FIELD",
    "RECORD_FIELDS_ADAPTER",
    "UPDATED_AT_FIELD",
    "Collection",
    "Record",
    "Snapshot",
    "TransactionType",
    "UserRole",
    "contains_non_finite",
    "default_records",
    "utc_timestamp",
    # Audit models
    "StoreEvent",
    "StoreEventBuilder",
    "StoreEventSeverity",
    "StoreEventType",
]
