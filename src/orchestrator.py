"""
Store Runtime Wiring

This module ties the store components together for a host process:
1. Configure structured logging
2. Open (or create) the snapshot at the configured path
3. Run the background refresh for as long as the host lives

DESIGN DECISION: The store itself knows nothing about environment
variables. The host reads Settings once and passes the snapshot path
and refresh interval in here.
"""

from functools import partial
from typing import Optional

from src.audit import AuditLogger, configure_logging
from src.config import Settings, get_settings
from src.services.auth import hash_password
from src.services.storage import FileCollectionStore, RefreshScheduler


def create_store_components(
    settings: Optional[Settings] = None,
) -> tuple[FileCollectionStore, RefreshScheduler]:
    """
    Factory function to create the store and its refresh scheduler.

    The scheduler is returned stopped; call start() on it.

    Raises:
        SnapshotDecodeError: If the configured snapshot is corrupt
        StoreUnavailableError: If the snapshot cannot be read or created
    """
    settings = settings or get_settings()
    store_settings = settings.store

    configure_logging(settings.app.log_level)
    audit_logger = AuditLogger()

    store = FileCollectionStore.open(
        store_settings.snapshot_path,
        password_hasher=partial(
            hash_password, rounds=store_settings.password_hash_rounds
        ),
        audit_logger=audit_logger,
        watch_external_changes=store_settings.watch_external_changes,
    )
    scheduler = RefreshScheduler(
        store,
        interval=store_settings.refresh_interval_seconds,
        audit_logger=audit_logger,
    )
    return store, scheduler


class StoreRuntime:
    """
    Context manager owning a store and its background refresh.

    Usage:
        with StoreRuntime() as store:
            store.insert("transactions", {...})
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self.store: Optional[FileCollectionStore] = None
        self.scheduler: Optional[RefreshScheduler] = None

    def __enter__(self) -> FileCollectionStore:
        self.store, self.scheduler = create_store_components(self._settings)
        self.scheduler.start()
        return self.store

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()
