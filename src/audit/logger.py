"""
Audit Logger

DESIGN DECISION: Every significant store action is logged.
This provides:
1. Traceability of mutations (which record, which fields)
2. Visibility into reload/persist failures that callers may swallow
3. A record of what the background refresh is doing

The audit logger is synchronous because the store is. It only logs
locally through structlog; there is no storage sink because the store
it would write to is the thing being audited.
"""

import logging
from typing import Optional

import structlog

from src.models.audit import StoreEvent, StoreEventBuilder, StoreEventSeverity


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog for JSON output."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger().setLevel(log_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service for the store.

    Events are rendered as structured JSON log lines at the level
    matching their severity.
    """

    def __init__(self, logger_name: str = "finance_store"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: StoreEvent) -> None:
        """Log a store event."""
        log_dict = event.to_log_dict()

        if event.severity == StoreEventSeverity.ERROR:
            self._logger.error("store_event", **log_dict)
        elif event.severity == StoreEventSeverity.WARNING:
            self._logger.warning("store_event", **log_dict)
        elif event.severity == StoreEventSeverity.DEBUG:
            self._logger.debug("store_event", **log_dict)
        else:
            self._logger.info("store_event", **log_dict)

    def log_snapshot_created(self, path: str) -> None:
        self.log(StoreEventBuilder.snapshot_created(path))

    def log_snapshot_loaded(self, path: str, counts: dict[str, int]) -> None:
        self.log(StoreEventBuilder.snapshot_loaded(path, counts))

    def log_snapshot_reloaded(self, path: str, counts: dict[str, int]) -> None:
        self.log(StoreEventBuilder.snapshot_reloaded(path, counts))

    def log_defaults_restored(self, record_ids: list[str]) -> None:
        self.log(StoreEventBuilder.defaults_restored(record_ids))

    def log_record_inserted(self, collection: str, record_id: str) -> None:
        self.log(StoreEventBuilder.record_inserted(collection, record_id))

    def log_record_updated(
        self,
        collection: str,
        record_id: str,
        fields: list[str],
    ) -> None:
        self.log(StoreEventBuilder.record_updated(collection, record_id, fields))

    def log_record_deleted(self, collection: str, record_id: str) -> None:
        self.log(StoreEventBuilder.record_deleted(collection, record_id))

    def log_reload_failed(self, path: str, error_message: str) -> None:
        self.log(StoreEventBuilder.reload_failed(path, error_message))

    def log_persist_failed(self, path: str, error_message: str) -> None:
        self.log(StoreEventBuilder.persist_failed(path, error_message))

    def log_refresh_started(self, interval: float) -> None:
        self.log(StoreEventBuilder.refresh_started(interval))

    def log_refresh_stopped(self) -> None:
        self.log(StoreEventBuilder.refresh_stopped())

    def log_refresh_tick_failed(
        self,
        error_type: str,
        error_message: Optional[str],
    ) -> None:
        self.log(StoreEventBuilder.refresh_tick_failed(error_type, error_message or ""))
