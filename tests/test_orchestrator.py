"""
Tests for the runtime wiring.
"""

import pytest

from src.config import Settings
from src.orchestrator import StoreRuntime, create_store_components
from src.services.auth import authenticate_user


@pytest.fixture
def store_env(monkeypatch, tmp_path):
    path = tmp_path / "runtime" / "db.json"
    monkeypatch.setenv("STORE_SNAPSHOT_PATH", str(path))
    monkeypatch.setenv("STORE_REFRESH_INTERVAL_SECONDS", "0.05")
    monkeypatch.setenv("STORE_PASSWORD_HASH_ROUNDS", "4")
    return path


class TestCreateStoreComponents:
    def test_builds_store_and_stopped_scheduler(self, store_env):
        store, scheduler = create_store_components(Settings())
        assert store.path == store_env
        assert store_env.exists()
        assert scheduler.interval == 0.05
        assert scheduler.running is False

    def test_configured_hasher_is_bcrypt(self, store_env):
        store, _ = create_store_components(Settings())
        store.insert("users", {"email": "a@example.com", "password": "pw"})
        stored = store.find_by_field("users", "email", "a@example.com", include_secrets=True)
        assert stored["password"].startswith("$2")
        assert authenticate_user(store, "a@example.com", "pw") is not None


class TestStoreRuntime:
    def test_runs_refresh_while_open(self, store_env):
        runtime = StoreRuntime(Settings())
        with runtime as store:
            assert runtime.scheduler.running is True
            record = store.insert("transactions", {"amount": 5, "type": "expense"})
            assert record["amount"] == -5
        assert runtime.scheduler.running is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
