"""
Tests for the Response Cache

Tests cover:
- Key normalization
- TTL expiry (lazy, on lookup)
- Manual clear
- Hit/miss statistics
"""

import threading

from recruitchat.services.cache import ResponseCache, cache_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestCacheKey:
    def test_normalizes_case_and_whitespace(self):
        assert cache_key("  Top 10   Candidates ") == "top 10 candidates"

    def test_equivalent_queries_share_key(self):
        assert cache_key("Python Candidates") == cache_key("python   candidates")


class TestResponseCache:
    def test_miss_returns_none(self):
        cache = ResponseCache(ttl_seconds=600)
        assert cache.get("anything") is None

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=600, clock=clock)
        cache.set("Python candidates", "Here they are")

        clock.now += 599
        assert cache.get("python  CANDIDATES") == "Here they are"

    def test_expired_entry_is_ignored_and_dropped(self):
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=600, clock=clock)
        cache.set("python candidates", "old answer")

        clock.now += 600
        assert cache.get("python candidates") is None
        assert len(cache) == 0

    def test_set_overwrites(self):
        cache = ResponseCache()
        cache.set("q", "first")
        cache.set("q", "second")
        assert cache.get("q") == "second"

    def test_clear(self):
        cache = ResponseCache()
        cache.set("a", "1")
        cache.set("b", "2")

        assert cache.clear() == 2
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_stats(self):
        cache = ResponseCache(ttl_seconds=300)
        cache.set("q", "answer")
        cache.get("q")
        cache.get("q")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["total"] == 3
        assert stats["hit_rate"] == 2 / 3
        assert stats["entries"] == 1
        assert stats["ttl_seconds"] == 300

    def test_empty_stats_hit_rate(self):
        assert ResponseCache().get_stats()["hit_rate"] == 0.0

    def test_concurrent_writers(self):
        """Entries written from several threads all land."""
        cache = ResponseCache()

        def write(prefix: str) -> None:
            for i in range(200):
                cache.set(f"{prefix}-{i}", "x")

        threads = [threading.Thread(target=write, args=(f"t{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 800
