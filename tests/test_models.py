"""
Tests for the Finance Tracker Store models and settings

Test strategy:
1. Unit tests for models, events and settings
2. Store behaviour against real temp files (see test_store.py)
3. No network or external services
"""

import pytest
from pydantic import ValidationError

from src.config import AppSettings, StoreSettings, get_settings, validate_all_settings
from src.models.audit import (
    StoreEvent,
    StoreEventBuilder,
    StoreEventSeverity,
    StoreEventType,
)
from src.models.record import (
    DEFAULT_CATEGORIES,
    Collection,
    Snapshot,
    TransactionType,
    default_records,
    utc_timestamp,
)


class TestRecordModels:
    """Tests for record-level models."""

    def test_collection_values(self):
        """Test the predefined collection names."""
        assert {c.value for c in Collection} == {"users", "transactions", "categories"}

    def test_transaction_types(self):
        assert TransactionType("expense") is TransactionType.EXPENSE
        assert TransactionType("income") is TransactionType.INCOME

    def test_default_records_are_independent_copies(self):
        """Test that mutating a seeded copy doesn't touch the seed rows."""
        records = default_records()
        records["categories"][0]["name"] = "Changed"
        assert DEFAULT_CATEGORIES[0]["name"] == "Food"
        assert default_records()["categories"][0]["name"] == "Food"

    def test_default_categories_are_flagged(self):
        assert all(row["isDefault"] is True for row in DEFAULT_CATEGORIES)
        assert [row["_id"] for row in DEFAULT_CATEGORIES] == ["1", "2", "3", "4", "5"]

    def test_utc_timestamp_format(self):
        ts = utc_timestamp()
        assert ts.endswith("Z")
        assert "T" in ts

    def test_snapshot_requires_ids(self):
        with pytest.raises(ValidationError):
            Snapshot(users=[{"email": "a@example.com"}])

    def test_snapshot_collections(self):
        snapshot = Snapshot(users=[{"_id": "u1"}])
        assert snapshot.collections()["users"] == [{"_id": "u1"}]
        assert snapshot.collections()["transactions"] == []


class TestStoreEvents:
    """Tests for audit event models."""

    def test_event_creation(self):
        event = StoreEvent(
            event_type=StoreEventType.RECORD_INSERTED,
            description="Inserted",
        )
        assert event.severity == StoreEventSeverity.INFO

    def test_to_log_dict(self):
        event = StoreEventBuilder.record_deleted("transactions", "t1")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "record_deleted"
        assert log_dict["collection"] == "transactions"
        assert log_dict["record_id"] == "t1"

    def test_update_event_records_field_names_only(self):
        event = StoreEventBuilder.record_updated("users", "u1", ["password", "email"])
        assert event.details == {"fields": ["email", "password"]}

    def test_failure_events_are_errors(self):
        assert StoreEventBuilder.persist_failed("db.json", "disk full").severity == StoreEventSeverity.ERROR
        assert StoreEventBuilder.reload_failed("db.json", "bad").severity == StoreEventSeverity.ERROR


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_store_defaults(self, monkeypatch):
        monkeypatch.delenv("STORE_SNAPSHOT_PATH", raising=False)
        monkeypatch.delenv("STORE_REFRESH_INTERVAL_SECONDS", raising=False)
        settings = StoreSettings()
        assert settings.snapshot_path.name == "db.json"
        assert settings.refresh_interval_seconds == 5.0
        assert settings.watch_external_changes is True

    def test_store_settings_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORE_SNAPSHOT_PATH", str(tmp_path / "x.json"))
        monkeypatch.setenv("STORE_REFRESH_INTERVAL_SECONDS", "2.5")
        settings = StoreSettings()
        assert settings.snapshot_path == tmp_path / "x.json"
        assert settings.refresh_interval_seconds == 2.5

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_interval_must_be_positive(self, monkeypatch, value):
        monkeypatch.setenv("STORE_REFRESH_INTERVAL_SECONDS", value)
        with pytest.raises(ValidationError):
            StoreSettings()

    def test_snapshot_path_cannot_be_directory(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORE_SNAPSHOT_PATH", str(tmp_path))
        with pytest.raises(ValidationError):
            StoreSettings()

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_validate_all_settings(self, monkeypatch):
        monkeypatch.setenv("STORE_PASSWORD_HASH_ROUNDS", "2")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()
        assert results["app"] is True
        assert results["store"] is False
        assert "store_error" in results


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
