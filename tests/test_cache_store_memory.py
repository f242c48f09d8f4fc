import threading
import unittest

from tedder.cache_store import InMemoryKeyValueStore, build_cache_store
from tedder.config import Settings


class TestInMemoryKeyValueStore(unittest.TestCase):
    def test_set_get_delete(self):
        store = InMemoryKeyValueStore()
        self.assertIsNone(store.get("k"))
        store.set("k", '{"a": 1}')
        self.assertEqual(store.get("k"), '{"a": 1}')
        store.set("k", "replaced")
        self.assertEqual(store.get("k"), "replaced")
        store.delete("k")
        self.assertIsNone(store.get("k"))
        store.delete("k")  # absent key is fine

    def test_clear(self):
        store = InMemoryKeyValueStore()
        store.set("a", "1")
        store.set("b", "2")
        store.clear()
        self.assertIsNone(store.get("a"))

    def test_concurrent_writers(self):
        store = InMemoryKeyValueStore()

        def write(n):
            for i in range(200):
                store.set(f"{n}:{i}", str(i))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(store.get("3:199"), "199")


class TestBuildCacheStore(unittest.TestCase):
    def test_memory_default(self):
        self.assertIsInstance(build_cache_store(Settings(historical_cache_backend="memory")), InMemoryKeyValueStore)

    def test_redis_requires_url(self):
        with self.assertRaises(ValueError):
            build_cache_store(Settings(historical_cache_backend="redis", historical_cache_redis_url=None))

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            build_cache_store(Settings(historical_cache_backend="sqlite"))


if __name__ == "__main__":
    unittest.main()
