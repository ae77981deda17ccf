"""
Audit Models for the Finance Tracker Store

Every significant store action produces an event:
1. Snapshot lifecycle (created, loaded, reloaded)
2. Record mutations (insert, update, delete)
3. Failures (reload, persist, refresh tick)

DESIGN DECISION: Events carry identifiers and field names only.
Record contents (and above all password hashes) never reach the log.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class StoreEventType(str, Enum):
    """Types of events we audit."""
    # Snapshot lifecycle
    SNAPSHOT_CREATED = "snapshot_created"
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_RELOADED = "snapshot_reloaded"
    DEFAULTS_RESTORED = "defaults_restored"

    # Mutations
    RECORD_INSERTED = "record_inserted"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"

    # Failures
    RELOAD_FAILED = "reload_failed"
    PERSIST_FAILED = "persist_failed"

    # Background refresh
    REFRESH_STARTED = "refresh_started"
    REFRESH_STOPPED = "refresh_stopped"
    REFRESH_TICK_FAILED = "refresh_tick_failed"


class StoreEventSeverity(str, Enum):
    """Severity level for store events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StoreEvent(BaseModel):
    """
    A single store event.

    This is the core unit of the store's audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: StoreEventType
    severity: StoreEventSeverity = StoreEventSeverity.INFO

    # Context - what is this about?
    collection: Optional[str] = None
    record_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "collection": self.collection,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class StoreEventBuilder:
    """
    Helper class to build store events with common patterns.

    Usage:
        event = StoreEventBuilder.record_inserted("transactions", record_id)
    """

    @staticmethod
    def snapshot_created(path: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.SNAPSHOT_CREATED,
            description="No snapshot found, created a freshly seeded one",
            details={"path": path},
        )

    @staticmethod
    def snapshot_loaded(path: str, counts: dict[str, int]) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.SNAPSHOT_LOADED,
            description="Snapshot loaded",
            details={"path": path, "counts": counts},
        )

    @staticmethod
    def snapshot_reloaded(path: str, counts: dict[str, int]) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.SNAPSHOT_RELOADED,
            severity=StoreEventSeverity.DEBUG,
            description="Snapshot reloaded from disk",
            details={"path": path, "counts": counts},
        )

    @staticmethod
    def defaults_restored(record_ids: list[str]) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.DEFAULTS_RESTORED,
            severity=StoreEventSeverity.WARNING,
            collection="categories",
            description=f"Re-inserted {len(record_ids)} missing default record(s)",
            details={"record_ids": record_ids},
        )

    @staticmethod
    def record_inserted(collection: str, record_id: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.RECORD_INSERTED,
            collection=collection,
            record_id=record_id,
            description=f"Inserted record into {collection}",
        )

    @staticmethod
    def record_updated(
        collection: str,
        record_id: str,
        fields: list[str],
    ) -> StoreEvent:
        """Build an update event. Only field names are recorded, never values."""
        return StoreEvent(
            event_type=StoreEventType.RECORD_UPDATED,
            collection=collection,
            record_id=record_id,
            description=f"Updated record in {collection}",
            details={"fields": sorted(fields)},
        )

    @staticmethod
    def record_deleted(collection: str, record_id: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.RECORD_DELETED,
            collection=collection,
            record_id=record_id,
            description=f"Deleted record from {collection}",
        )

    @staticmethod
    def reload_failed(path: str, error_message: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.RELOAD_FAILED,
            severity=StoreEventSeverity.ERROR,
            description="Reload failed, keeping last good in-memory state",
            details={"path": path},
            error_message=error_message,
        )

    @staticmethod
    def persist_failed(path: str, error_message: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.PERSIST_FAILED,
            severity=StoreEventSeverity.ERROR,
            description="Snapshot write failed, mutation retained in memory",
            details={"path": path},
            error_message=error_message,
        )

    @staticmethod
    def refresh_started(interval: float) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.REFRESH_STARTED,
            description="Background refresh started",
            details={"interval_seconds": interval},
        )

    @staticmethod
    def refresh_stopped() -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.REFRESH_STOPPED,
            description="Background refresh stopped",
        )

    @staticmethod
    def refresh_tick_failed(error_type: str, error_message: str) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.REFRESH_TICK_FAILED,
            severity=StoreEventSeverity.WARNING,
            description="Scheduled refresh failed, will retry next interval",
            details={"error_type": error_type},
            error_message=error_message,
        )
