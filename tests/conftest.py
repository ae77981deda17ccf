"""Shared fixtures for store tests."""

import pytest

from src.services.storage import FileCollectionStore, decode


def fake_hasher(plaintext: str) -> str:
    """Cheap stand-in for bcrypt so tests stay fast."""
    return f"hashed::{plaintext}"


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "data" / "db.json"


@pytest.fixture
def make_store(snapshot_path):
    """Open a store with the fake hasher; defaults to the shared snapshot path."""
    def _make(path=None, **kwargs):
        kwargs.setdefault("password_hasher", fake_hasher)
        return FileCollectionStore.open(path or snapshot_path, **kwargs)
    return _make


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def read_snapshot(snapshot_path):
    """Decode whatever is currently on disk."""
    def _read():
        return decode(snapshot_path.read_bytes())
    return _read
