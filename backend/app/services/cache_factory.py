"""
Event cache factory.
Configures which cache backend the application uses.
"""

from typing import Optional

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.services.cache_service import InMemoryEventCache, NullEventCache, RedisEventCache
from app.services.interfaces.event_cache import EventCache

logger = get_logger(__name__)


async def create_event_cache(settings: Settings) -> EventCache:
    """
    Build the configured cache backend.

    CACHE_BACKEND:
    - redis: RedisEventCache, or NullEventCache when Redis is unreachable
    - memory: InMemoryEventCache (single process only)
    - none: NullEventCache
    """
    backend = settings.CACHE_BACKEND.lower()

    if backend == "redis":
        cache = RedisEventCache.from_url(settings.REDIS_URL, settings.REDIS_CACHE_TTL)
        if await cache.ping():
            logger.info("redis_connected", url=settings.REDIS_URL)
            return cache
        await cache.close()
        logger.warning("redis_unavailable", message="Running without cache")
        return NullEventCache()

    if backend == "memory":
        return InMemoryEventCache(ttl=settings.REDIS_CACHE_TTL)

    if backend != "none":
        logger.warning("unknown_cache_backend", backend=backend)
    return NullEventCache()


# Singleton instance
_cache: Optional[EventCache] = None


async def get_event_cache() -> EventCache:
    """FastAPI dependency returning the process-wide cache, built on first use."""
    global _cache
    if _cache is None:
        _cache = await create_event_cache(get_settings())
    return _cache


async def close_event_cache() -> None:
    global _cache
    if _cache is not None:
        await _cache.close()
        _cache = None
