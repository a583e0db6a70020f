"""Tests for the transaction listing cache."""

from datetime import datetime, timedelta, timezone

from services.transaction_cache import TransactionListCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self):
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class TestTransactionListCache:
    def test_get_missing_returns_none(self):
        cache = TransactionListCache()
        assert cache.get("user-1", "key") is None

    def test_set_then_get(self):
        cache = TransactionListCache()
        cache.set("user-1", "key", {"total_count": 3})
        assert cache.get("user-1", "key") == {"total_count": 3}

    def test_entries_are_per_user(self):
        cache = TransactionListCache()
        cache.set("user-1", "key", "mine")
        assert cache.get("user-2", "key") is None

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = TransactionListCache(ttl_seconds=300, clock=clock)
        cache.set("user-1", "key", "value")

        clock.advance(299)
        assert cache.get("user-1", "key") == "value"

        clock.advance(1)
        assert cache.get("user-1", "key") is None
        assert len(cache) == 0

    def test_least_recently_used_evicted(self):
        cache = TransactionListCache(max_entries=2)
        cache.set("user-1", "a", 1)
        cache.set("user-1", "b", 2)
        cache.get("user-1", "a")
        cache.set("user-1", "c", 3)

        assert cache.get("user-1", "b") is None
        assert cache.get("user-1", "a") == 1
        assert cache.get("user-1", "c") == 3

    def test_set_purges_expired_entries(self):
        clock = FakeClock()
        cache = TransactionListCache(ttl_seconds=60, clock=clock)
        cache.set("user-1", "old", 1)
        clock.advance(120)
        cache.set("user-1", "new", 2)

        assert len(cache) == 1

    def test_invalidate_user(self):
        cache = TransactionListCache()
        cache.set("user-1", "a", 1)
        cache.set("user-1", "b", 2)
        cache.set("user-2", "a", 3)

        removed = cache.invalidate_user("user-1")

        assert removed == 2
        assert cache.get("user-1", "a") is None
        assert cache.get("user-2", "a") == 3

    def test_clear(self):
        cache = TransactionListCache()
        cache.set("user-1", "a", 1)
        cache.clear()
        assert len(cache) == 0
