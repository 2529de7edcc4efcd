import logging
from typing import List

from .cache import CacheStore, CATEGORY_TREE_KEY, CATEGORY_LIST_KEY

logger = logging.getLogger(__name__)


async def invalidate_category_cache(cache: CacheStore) -> bool:
    """
    Drop every cached category view (tree and flat list) so that the next read
    rebuilds it from the database. Called after any category mutation.

    Returns False when the cache could not be reached; stale views then live
    until their TTL runs out.
    """
    removed = await cache.delete(CATEGORY_TREE_KEY, CATEGORY_LIST_KEY)
    if removed is None:
        logger.warning("Category cache invalidation failed, cached views expire by TTL")
        return False
    logger.info(f"Category cache invalidated ({removed} keys)")
    return True


async def invalidate_product_cache(cache: CacheStore) -> bool:
    """
    Drop the cached hot/new product lists after a product mutation.
    """
    patterns = [
        "hot:products:*",
        "new:products:*",
    ]
    success = True
    for pattern in patterns:
        removed = await cache.delete_pattern(pattern)
        if removed is None:
            logger.warning(f"Product cache invalidation failed for pattern: {pattern}")
            success = False
        elif removed:
            logger.info(f"Invalidated {removed} cache keys matching pattern: {pattern}")
    return success


async def invalidate_specific_cache(cache: CacheStore, cache_keys: List[str]) -> bool:
    """
    Drop the given cache keys.

    Args:
        cache: cache store
        cache_keys: keys to delete
    """
    if not cache_keys:
        return True
    if await cache.delete(*cache_keys) is None:
        logger.warning(f"Failed to invalidate cache keys: {cache_keys}")
        return False
    logger.info(f"Invalidated specific cache keys: {cache_keys}")
    return True
