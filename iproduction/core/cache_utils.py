"""
Caching utilities for tenant dashboard statistics

Keys carry a per-tenant version number so a single bump invalidates every
cached entry of that tenant without pattern scans.
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

VERSION_KEY = "tenant_cache_version:{tenant_id}"


def get_tenant_cache_version(tenant_id):
    """Current cache version for a tenant (starts at 1)"""
    key = VERSION_KEY.format(tenant_id=tenant_id)
    version = cache.get(key)
    if version is None:
        cache.add(key, 1, None)
        version = cache.get(key, 1)
    return version


def bump_tenant_cache_version(tenant_id):
    """Invalidate all cached entries of a tenant"""
    key = VERSION_KEY.format(tenant_id=tenant_id)
    try:
        cache.incr(key)
    except ValueError:
        # Key expired or never set
        cache.set(key, 2, None)
    logger.debug(f"Bumped cache version for tenant {tenant_id}")


def make_cache_key(prefix, tenant_id, *args, **kwargs):
    """Generate a versioned per-tenant cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:t{tenant_id}:v{get_tenant_cache_version(tenant_id)}:{key_hash}"


def cached_tenant_query(key_prefix, cache_ttl=None):
    """
    Decorator to cache expensive per-tenant aggregations

    Usage:
        @cached_tenant_query("dashboard_stats")
        def dashboard_stats(tenant, date_from, date_to):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(tenant, *args, **kwargs):
            ttl = cache_ttl if cache_ttl is not None else settings.DASHBOARD_CACHE_TTL
            cache_key = make_cache_key(key_prefix, tenant.id, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(tenant, *args, **kwargs)
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator
