"""
Caching helpers for read-heavy public endpoints.
Backed by Redis (django-redis) in deployment, locmem in development and tests.
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PUBLIC_CATEGORIES_CACHE_TTL = 300  # 5 minutes
PUBLIC_CATEGORIES_PREFIX = 'public_categories'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_cached(prefix, *args, **kwargs):
    """Returns (cached_data, cache_key)"""
    cache_key = make_cache_key(prefix, *args, **kwargs)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for {prefix}: {cache_key}")
    return cached_data, cache_key


def set_cached(cache_key, data, ttl):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached {cache_key} for {ttl}s")


def invalidate_cache_prefix(prefix):
    """
    Drop every key under a prefix.
    django-redis exposes delete_pattern; other backends are cleared wholesale.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"{prefix}:*")
            logger.info(f"Invalidated {deleted} cache keys under {prefix}")
        else:
            cache.clear()
    except Exception as e:
        logger.warning(f"Could not invalidate cache prefix {prefix}: {e}")
