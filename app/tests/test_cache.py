import pytest
from fakeredis import aioredis as fake_aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.cache import CacheStore


class BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("redis is down")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("redis is down")

    async def delete(self, *keys):
        raise RedisConnectionError("redis is down")

    async def scan_iter(self, match=None, count=None):
        raise RedisConnectionError("redis is down")
        yield


@pytest.mark.asyncio
async def test_set_get_and_delete_use_prefix():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    cache = CacheStore(client, prefix="test:")

    assert await cache.set("greeting", "hello", expire=60) is True
    assert await cache.get("greeting") == "hello"
    assert await client.get("test:greeting") == "hello"
    assert 0 < await client.ttl("test:greeting") <= 60

    assert await cache.delete("greeting") == 1
    assert await cache.get("greeting") is None


@pytest.mark.asyncio
async def test_delete_pattern_only_removes_matches():
    client = fake_aioredis.FakeRedis(decode_responses=True)
    cache = CacheStore(client, prefix="test:")
    await cache.set("hot:products:10", "[]")
    await cache.set("hot:products:20", "[]")
    await cache.set("category:tree", "[]")

    assert await cache.delete_pattern("hot:products:*") == 2
    assert await cache.get("hot:products:10") is None
    assert await cache.get("category:tree") == "[]"


@pytest.mark.asyncio
async def test_redis_failure_degrades_to_cache_miss():
    cache = CacheStore(BrokenRedis(), prefix="test:")

    assert await cache.get("anything") is None
    assert await cache.set("anything", "value") is False
    assert await cache.delete("anything") is None
    assert await cache.delete_pattern("hot:products:*") is None


@pytest.mark.asyncio
async def test_delete_without_keys_is_a_no_op():
    cache = CacheStore(BrokenRedis(), prefix="test:")
    assert await cache.delete() == 0
