"""
Background Refresh Scheduler

Periodically reloads the snapshot so edits made outside this process
(an operator hand-editing the file) show up without a restart.

Each tick goes through store.ensure_fresh(force=True), which takes the
same lock as every other store operation. A scheduled reload therefore
never interleaves with a caller's read-modify-write.
"""

import threading
from typing import Optional

from src.audit import AuditLogger
from src.services.storage.interface import CollectionStoreInterface, StorageError


class RefreshScheduler:
    """Runs store.ensure_fresh() every ``interval`` seconds on a daemon thread."""

    def __init__(
        self,
        store: CollectionStoreInterface,
        interval: float,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")
        self._store = store
        self._interval = interval
        self._audit = audit_logger or AuditLogger()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0
        self.failures = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Begin refreshing in the background."""
        if self.running:
            raise RuntimeError("Refresh scheduler is already running")
        # Each run owns its event; a thread that outlives stop(timeout) still exits
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="store-refresh",
            daemon=True,
        )
        self._thread.start()
        self._audit.log_refresh_started(self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Cancel future refreshes.

        A reload already in progress runs to completion before this returns
        (unless ``timeout`` expires first).
        """
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
        self._audit.log_refresh_stopped()

    def tick(self) -> bool:
        """
        Run one refresh now.

        Errors are logged rather than raised: there is no caller to hand
        them to, and the next tick retries.

        Returns:
            True if the refresh succeeded
        """
        self.ticks += 1
        try:
            self._store.ensure_fresh(force=True)
        except StorageError as e:
            self.failures += 1
            self._audit.log_refresh_tick_failed(type(e).__name__, str(e))
            return False
        return True

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            self.tick()

    def __enter__(self) -> "RefreshScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
