"""
Tests for the snapshot codec.
"""

import pytest

from src.models.record import Snapshot
from src.services.storage import SnapshotDecodeError, decode, encode


class TestEncodeDecode:
    """Snapshot serialization."""

    def test_round_trip_preserves_nested_values(self):
        """Test that every supported value type survives a round trip."""
        snapshot = Snapshot(
            transactions=[
                {
                    "_id": "t1",
                    "amount": -12.5,
                    "count": 3,
                    "isRecurring": False,
                    "notes": None,
                    "tags": ["rent", "monthly"],
                    "recurringDetails": {"frequency": "monthly", "endDate": "2025-01-01T00:00:00.000Z"},
                },
            ],
            users=[{"_id": "u1", "email": "a@example.com"}],
        )
        assert decode(encode(snapshot)) == snapshot

    def test_encode_is_human_readable(self):
        """Test that output is indented JSON with all three collections."""
        data = encode(Snapshot())
        text = data.decode("utf-8")
        assert '\n  "transactions": []' in text
        assert '"users": []' in text
        assert '"categories": []' in text

    def test_missing_collections_default_to_empty(self):
        """Test that absent top-level keys decode as empty collections."""
        snapshot = decode(b'{"users": [{"_id": "u1"}]}')
        assert snapshot.users == [{"_id": "u1"}]
        assert snapshot.transactions == []
        assert snapshot.categories == []

    def test_unknown_top_level_keys_are_ignored(self):
        snapshot = decode(b'{"budgets": [1, 2], "categories": []}')
        assert snapshot == Snapshot()


class TestCorruptSnapshots:
    """Malformed input is rejected, never silently discarded."""

    @pytest.mark.parametrize("data", [
        b"",
        b"{not json",
        b"[]",
        b'{"users": {"_id": "u1"}}',
        b'{"users": ["just a string"]}',
    ])
    def test_malformed_input_raises(self, data):
        with pytest.raises(SnapshotDecodeError) as exc_info:
            decode(data, path="db.json")
        assert exc_info.value.reason == "corrupt"
        assert exc_info.value.path == "db.json"

    def test_record_without_id_is_corrupt(self):
        """Test that every record must carry an identifier."""
        with pytest.raises(SnapshotDecodeError):
            decode(b'{"transactions": [{"amount": 5}]}')

    def test_duplicate_ids_are_corrupt(self):
        """Test that identifiers must be unique within a collection."""
        with pytest.raises(SnapshotDecodeError):
            decode(b'{"categories": [{"_id": "1"}, {"_id": "1"}]}')

    def test_same_id_in_different_collections_is_allowed(self):
        snapshot = decode(b'{"categories": [{"_id": "1"}], "users": [{"_id": "1"}]}')
        assert snapshot.categories[0]["_id"] == snapshot.users[0]["_id"]


class TestStoreSnapshots:
    """Snapshots produced through the store round-trip losslessly."""

    def test_store_snapshot_round_trip(self, store, read_snapshot):
        store.insert("users", {"name": "Asha", "email": "asha@example.com", "password": "pw"})
        store.insert("transactions", {"amount": "19.99", "type": "expense", "tags": ["food"]})
        store.insert("categories", {"name": "Pets", "type": "expense", "meta": {"budget": 100}})

        snapshot = read_snapshot()
        assert decode(encode(snapshot)) == snapshot
        assert len(snapshot.transactions) == 1
        assert len(snapshot.users) == 1
        assert len(snapshot.categories) == 6


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
