"""
Concurrency tests.

Many threads hammer one store (optionally with the background refresh
running) and we check that no write is lost.
"""

import threading

import pytest

from src.services.storage import DuplicateError, RefreshScheduler


THREADS = 8
INSERTS_PER_THREAD = 25


def run_threads(target, count=THREADS):
    barrier = threading.Barrier(count)
    errors = []

    def worker(n):
        barrier.wait()
        try:
            target(n)
        except Exception as e:  # asserted on by the caller
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return errors


class TestNoLostUpdates:
    """Linearizable inserts."""

    def _insert_many(self, store):
        def target(n):
            for i in range(INSERTS_PER_THREAD):
                store.insert("transactions", {"amount": 1, "type": "income", "worker": n, "i": i})
        return run_threads(target)

    def test_concurrent_inserts(self, store, make_store, read_snapshot):
        errors = self._insert_many(store)
        assert errors == []

        expected = THREADS * INSERTS_PER_THREAD
        records = store.list("transactions")
        assert len(records) == expected
        assert len({r["_id"] for r in records}) == expected

        assert len(read_snapshot().transactions) == expected
        assert len(make_store().list("transactions")) == expected

    def test_concurrent_inserts_with_refresh(self, store, read_snapshot):
        """Test that scheduled reloads never drop a concurrent write."""
        scheduler = RefreshScheduler(store, interval=0.001)
        with scheduler:
            errors = self._insert_many(store)
        assert errors == []
        assert scheduler.failures == 0

        expected = THREADS * INSERTS_PER_THREAD
        ids = {r["_id"] for r in read_snapshot().transactions}
        assert len(ids) == expected

    def test_concurrent_mixed_operations(self, store):
        seeded = [
            store.insert("transactions", {"amount": 1, "type": "expense"})["_id"]
            for _ in range(THREADS)
        ]

        def target(n):
            store.update("transactions", seeded[n], {"amount": n + 1})
            store.insert("categories", {"name": f"c{n}", "type": "expense"})
            store.list("transactions")
            assert store.delete("transactions", seeded[n]) is True

        assert run_threads(target) == []
        assert store.list("transactions") == []
        assert len([c for c in store.list("categories") if not c["isDefault"]]) == THREADS


class TestConcurrentUniqueness:
    def test_one_winner_per_email(self, store):
        """Test that racing sign-ups with the same email produce one user."""
        errors = run_threads(
            lambda n: store.insert("users", {"email": "race@example.com", "worker": n})
        )
        assert len(errors) == THREADS - 1
        assert all(isinstance(e, DuplicateError) for e in errors)
        assert len(store.list("users")) == 1

    def test_same_category_name_is_accepted_twice(self, store):
        errors = run_threads(
            lambda n: store.insert("categories", {"name": "Pets", "type": "expense"}),
            count=2,
        )
        assert errors == []
        assert len([c for c in store.list("categories") if c["name"] == "Pets"]) == 2


class TestLockScope:
    def test_password_hashing_does_not_block_readers(self, make_store):
        """Test that the store stays usable while a password is hashed."""
        hashing = threading.Event()
        release = threading.Event()
        finished = threading.Event()

        def slow_hasher(plaintext):
            hashing.set()
            release.wait(5)
            finished.set()
            return f"slow::{plaintext}"

        store = make_store(password_hasher=slow_hasher)
        signup = threading.Thread(
            target=store.insert,
            args=("users", {"email": "asha@example.com", "password": "pw"}),
        )
        signup.start()
        try:
            assert hashing.wait(5)
            assert store.get("categories", "1")["name"] == "Food"
            store.insert("transactions", {"amount": 1, "type": "income"})
            assert not finished.is_set()
        finally:
            release.set()
            signup.join(timeout=10)

        user = store.find_by_field("users", "email", "asha@example.com", include_secrets=True)
        assert user["password"] == "slow::pw"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
