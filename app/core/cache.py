import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import REDIS_URL, REDIS_SOCKET_TIMEOUT, CACHE_PREFIX

logger = logging.getLogger(__name__)

# Cache keys (without prefix)
CATEGORY_TREE_KEY = "category:tree"
CATEGORY_LIST_KEY = "category:list"
HOT_PRODUCTS_KEY = "hot:products:{limit}"
NEW_PRODUCTS_KEY = "new:products:{limit}"
USER_INFO_KEY = "user:info:{user_id}"


class CacheStore:
    """
    Thin key/value wrapper around an asyncio Redis client.

    Redis failures are logged and reported as a cache miss so that a broken cache
    never fails a request; the caller falls back to the database. Deletes report
    a failure as None so invalidation can tell it apart from "nothing to remove".
    """

    def __init__(self, client, prefix: str = CACHE_PREFIX):
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(self._key(key))
        except RedisError as e:
            logger.error(f"Cache get failed for {key}: {str(e)}")
            return None

    async def set(self, key: str, value: str, expire: int = 3600) -> bool:
        try:
            await self.client.set(self._key(key), value, ex=expire)
            return True
        except RedisError as e:
            logger.error(f"Cache set failed for {key}: {str(e)}")
            return False

    async def delete(self, *keys: str) -> Optional[int]:
        """Number of keys removed, or None when Redis could not be reached."""
        if not keys:
            return 0
        try:
            return await self.client.delete(*[self._key(key) for key in keys])
        except RedisError as e:
            logger.error(f"Cache delete failed for {keys}: {str(e)}")
            return None

    async def delete_pattern(self, pattern: str) -> Optional[int]:
        removed = 0
        try:
            async for key in self.client.scan_iter(match=self._key(pattern), count=100):
                removed += await self.client.delete(key)
        except RedisError as e:
            logger.error(f"Cache pattern delete failed for {pattern} after {removed} keys: {str(e)}")
            return None
        return removed


redis_client = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    socket_timeout=REDIS_SOCKET_TIMEOUT,
    socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
)
cache_store = CacheStore(redis_client)


def get_cache_store() -> CacheStore:
    return cache_store
