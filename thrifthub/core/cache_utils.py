"""
Caching helpers for frequently read, rarely written data.

Order statistics and customer detail payloads are cached under fixed keys
and deleted by post_save/post_delete signals in the owning apps.
"""
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)

# Cache key prefixes
ORDER_STATS_KEY = 'order_stats'
CUSTOMER_KEY_PREFIX = 'customer:'

# Cache TTLs (in seconds)
ORDER_STATS_CACHE_TTL = 300  # 5 minutes
CUSTOMER_CACHE_TTL = 600  # 10 minutes


def get_customer_cache_key(customer_id: int) -> str:
    """Get cache key for customer by ID"""
    return f"{CUSTOMER_KEY_PREFIX}{customer_id}"


def get_cached_customer(customer_id: int):
    return cache.get(get_customer_cache_key(customer_id))


def cache_customer_data(customer_id: int, data, ttl: int = CUSTOMER_CACHE_TTL):
    cache.set(get_customer_cache_key(customer_id), data, ttl)
    logger.debug(f"Cached customer data (ID: {customer_id})")


def invalidate_customer_cache(customer_id: int):
    cache.delete(get_customer_cache_key(customer_id))
    logger.debug(f"Invalidated customer cache (ID: {customer_id})")


def get_cached_order_stats():
    return cache.get(ORDER_STATS_KEY)


def cache_order_stats(data, ttl: int = ORDER_STATS_CACHE_TTL):
    cache.set(ORDER_STATS_KEY, data, ttl)
    logger.debug("Cached order stats")


def invalidate_order_stats():
    cache.delete(ORDER_STATS_KEY)
    logger.debug("Invalidated order stats cache")
