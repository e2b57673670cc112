"""
Тесты LRU-кеша шаблонов.
"""

import threading

import pytest

from templater.cache import DEFAULT_CAPACITY, CacheSnapshot, TemplateCache


class TestTemplateCache:

    def test_get_returns_stored_value(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert cache.get("missing") is None

    def test_evicts_least_recently_used(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        assert "a" not in cache
        assert cache.has("b") and cache.has("c")
        assert len(cache) == 2

    def test_get_promotes_entry(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert "a" in cache
        assert "b" not in cache

    def test_set_existing_key_updates_and_promotes(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)
        assert cache.get("a") == 10
        assert "b" not in cache
        assert cache.size() == 2

    def test_has_does_not_promote(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.has("a")
        cache.set("c", 3)
        assert "a" not in cache

    def test_size_never_exceeds_capacity(self):
        cache = TemplateCache(3)
        for i in range(10):
            cache.set(i, i)
            assert cache.size() <= 3
        assert [k for k in range(10) if k in cache] == [7, 8, 9]

    def test_clear(self):
        cache = TemplateCache(2)
        cache.set("a", 1)
        cache.get("a")
        cache.clear()
        assert cache.size() == 0
        assert cache.snapshot() == CacheSnapshot(capacity=2, size=0, hits=0, misses=0)

    def test_snapshot_counts_hits_and_misses(self):
        cache = TemplateCache(5)
        cache.set("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("b")
        snap = cache.snapshot()
        assert (snap.size, snap.hits, snap.misses) == (1, 2, 1)

    @pytest.mark.parametrize("capacity", [1, 2, 3, 10])
    def test_capacity_plus_one_inserts_evict_the_first(self, capacity):
        """Тест: после N+1 вставок в кеш ёмкости N вытеснен только первый ключ."""
        cache = TemplateCache(capacity)
        for i in range(capacity + 1):
            cache.set(i, f"value-{i}")

        assert len(cache) == capacity
        assert not cache.has(0)
        assert all(cache.has(i) for i in range(1, capacity + 1))

    def test_default_capacity(self):
        assert TemplateCache().capacity == DEFAULT_CAPACITY

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_capacity_must_be_positive(self, capacity):
        with pytest.raises(ValueError):
            TemplateCache(capacity)

    def test_concurrent_writers_respect_capacity(self):
        cache = TemplateCache(50)

        def worker(offset):
            for i in range(200):
                cache.set((offset, i), i)
                cache.get((offset, i // 2))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size() == 50
