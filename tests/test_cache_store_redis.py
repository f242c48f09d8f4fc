import unittest
from unittest.mock import patch

from tedder.cache_store import build_cache_store
from tedder.cache_store.redis import RedisKeyValueStore
from tedder.config import Settings


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expires = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expires[key] = ttl

    def set(self, key, value):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)
        self.expires.pop(key, None)


class TestRedisKeyValueStore(unittest.TestCase):
    def test_round_trip_decodes_bytes(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client)
        store.set("tg_historical_data", '{"city": "İstanbul"}')

        self.assertIn("tedder:tg_historical_data", client.store)
        self.assertIsInstance(client.store["tedder:tg_historical_data"], bytes)
        self.assertEqual(store.get("tg_historical_data"), '{"city": "İstanbul"}')

    def test_ttl_uses_setex(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client, prefix="x:", ttl_seconds=60)
        store.set("k", "v")
        self.assertEqual(client.expires["x:k"], 60)

    def test_missing_and_delete(self):
        client = FakeRedis()
        store = RedisKeyValueStore(client)
        self.assertIsNone(store.get("nope"))
        store.set("k", "v")
        store.delete("k")
        self.assertEqual(client.store, {})

    def test_factory_builds_from_url(self):
        client = FakeRedis()
        settings = Settings(historical_cache_backend="redis", historical_cache_redis_url="redis://:pw@cache:6379/0")
        with patch("redis.Redis.from_url", return_value=client) as from_url:
            store = build_cache_store(settings)
        from_url.assert_called_once_with("redis://:pw@cache:6379/0")
        self.assertIs(store.client, client)
        self.assertEqual(store.ttl, settings.historical_cache_ttl_seconds)


if __name__ == "__main__":
    unittest.main()
