"""
Tests for the result cache.
"""
import threading

from trainlab.services.analytics.cache import AnalyticsCache


class TestAnalyticsCache:
    """LRU memoization with published snapshots"""

    def test_get_after_publish(self):
        cache = AnalyticsCache(max_entries=4)
        cache.publish("a", 1)

        assert cache.get("a") == 1
        assert cache.get("missing") is None

    def test_least_recently_used_evicted(self):
        cache = AnalyticsCache(max_entries=2)
        cache.publish("a", 1)
        cache.publish("b", 2)
        cache.get("a")
        cache.publish("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert len(cache) == 2

    def test_latest_snapshot(self):
        cache = AnalyticsCache(max_entries=4)
        assert cache.latest() is None

        cache.publish("a", 1)
        cache.publish("b", 2)
        cache.get("a")

        assert cache.latest() == 2

    def test_stats(self):
        cache = AnalyticsCache(max_entries=4)
        cache.publish("a", 1)
        cache.get("a")
        cache.get("b")

        assert cache.get_stats() == {"entries": 1, "max_entries": 4, "hits": 1, "misses": 1}

    def test_clear(self):
        cache = AnalyticsCache(max_entries=4)
        cache.publish("a", 1)
        cache.clear()

        assert len(cache) == 0
        assert cache.latest() is None

    def test_concurrent_readers(self):
        cache = AnalyticsCache(max_entries=8)
        cache.publish("key", ("immutable", 1))
        seen = []

        def read():
            for _ in range(200):
                seen.append(cache.get("key"))

        threads = [threading.Thread(target=read) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(seen) == 800
        assert all(value == ("immutable", 1) for value in seen)
