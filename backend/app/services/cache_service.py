"""
Event list cache implementations.

CACHING STRATEGY
================

What we cache:
  - The full event listing (GET /api/events), JSON-serialized
  - Key: "events:list", tagged "events"

Why:
  - The grid UI reloads the whole list after every dialog action
  - Sorting, filtering and paging happen client-side, so one key covers
    every view of the table

Invalidation strategy:
  - The event service invalidates the "events" tag after every committed
    create, update and delete
  - Invalidation deletes and bumps the tag version; the next list request
    repopulates
  - A list request snapshots the tag version before querying and only
    stores its result if the version is unchanged (WATCH on "tagver:events"),
    so a listing read before a concurrent commit is never cached after it
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

  Tags are Redis sets ("tag:events") holding the keys attached to them, so
  a flush is SMEMBERS + DEL instead of a SCAN over the keyspace.

Failure handling:
  - Redis errors are logged and treated as a miss. The cache never fails
    a request.
"""

import json
import time
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from app.core.logging import get_logger
from app.core.metrics import record_cache_operation
from app.services.interfaces.event_cache import EventCache

logger = get_logger(__name__)


def _tag_key(tag: str) -> str:
    return f"tag:{tag}"


def _version_key(tag: str) -> str:
    return f"tagver:{tag}"


class RedisEventCache(EventCache):
    """Redis-backed cache shared by every worker process."""

    def __init__(self, client: redis.Redis, ttl: int) -> None:
        self._client = client
        self._ttl = ttl

    @classmethod
    def from_url(cls, url: str, ttl: int) -> "RedisEventCache":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client, ttl)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            return False

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self._client.get(key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))
            record_cache_operation("get", "error")
            return None

        if data is None:
            logger.debug("cache_miss", key=key)
            record_cache_operation("get", "miss")
            return None

        logger.debug("cache_hit", key=key)
        record_cache_operation("get", "hit")
        return json.loads(data)

    async def set(
        self,
        key: str,
        value: Any,
        tags: tuple[str, ...] = (),
        version: Optional[int] = None,
    ) -> bool:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                if version is not None and tags:
                    version_keys = [_version_key(tag) for tag in tags]
                    await pipe.watch(*version_keys)
                    current = await pipe.mget(version_keys)
                    if any(int(v or 0) != version for v in current):
                        logger.debug("cache_set_stale", key=key, version=version)
                        record_cache_operation("set", "stale")
                        return False
                    pipe.multi()
                pipe.setex(key, self._ttl, json.dumps(value, default=str))
                for tag in tags:
                    pipe.sadd(_tag_key(tag), key)
                    pipe.expire(_tag_key(tag), self._ttl)
                await pipe.execute()
        except WatchError:
            logger.debug("cache_set_stale", key=key, version=version)
            record_cache_operation("set", "stale")
            return False
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))
            record_cache_operation("set", "error")
            return False

        logger.debug("cache_set", key=key, ttl=self._ttl, tags=list(tags))
        record_cache_operation("set", "ok")
        return True

    async def tag_version(self, tag: str) -> Optional[int]:
        try:
            value = await self._client.get(_version_key(tag))
        except Exception as e:
            logger.error("cache_version_error", tag=tag, error=str(e))
            record_cache_operation("version", "error")
            return None
        return int(value or 0)

    async def invalidate_tag(self, tag: str) -> int:
        try:
            # Version first: a reader that already snapshotted it can no longer store
            await self._client.incr(_version_key(tag))
            keys = await self._client.smembers(_tag_key(tag))
            if keys:
                await self._client.delete(*keys)
            await self._client.delete(_tag_key(tag))
            logger.info("cache_invalidated", tag=tag, keys_deleted=len(keys))
            record_cache_operation("invalidate", "ok")
            return len(keys)
        except Exception as e:
            logger.error("cache_invalidation_error", tag=tag, error=str(e))
            record_cache_operation("invalidate", "error")
            return 0

    async def stats(self) -> dict:
        try:
            info = await self._client.info("stats")
            hits = info.get("keyspace_hits", 0)
            misses = info.get("keyspace_misses", 0)
            return {
                "backend": "redis",
                "status": "connected",
                "hits": hits,
                "misses": misses,
                "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            }
        except Exception as e:
            logger.error("cache_stats_error", error=str(e))
            return {"backend": "redis", "status": "error"}

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryEventCache(EventCache):
    """Process-local cache with per-entry expiry. Values are stored as JSON text."""

    def __init__(self, ttl: int = 300) -> None:
        self._ttl = ttl
        self._entries: dict[str, tuple[float, str]] = {}
        self._tags: dict[str, set[str]] = {}
        self._versions: dict[str, int] = {}
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is not None and entry[0] <= time.monotonic():
            del self._entries[key]
            entry = None

        if entry is None:
            self._misses += 1
            record_cache_operation("get", "miss")
            return None

        self._hits += 1
        record_cache_operation("get", "hit")
        # Decode on every read so callers can't mutate the stored value
        return json.loads(entry[1])

    async def set(
        self,
        key: str,
        value: Any,
        tags: tuple[str, ...] = (),
        version: Optional[int] = None,
    ) -> bool:
        if version is not None and any(self._versions.get(tag, 0) != version for tag in tags):
            record_cache_operation("set", "stale")
            return False
        self._entries[key] = (time.monotonic() + self._ttl, json.dumps(value, default=str))
        for tag in tags:
            self._tags.setdefault(tag, set()).add(key)
        record_cache_operation("set", "ok")
        return True

    async def tag_version(self, tag: str) -> Optional[int]:
        return self._versions.get(tag, 0)

    async def invalidate_tag(self, tag: str) -> int:
        self._versions[tag] = self._versions.get(tag, 0) + 1
        keys = self._tags.pop(tag, set())
        deleted = 0
        for key in keys:
            if self._entries.pop(key, None) is not None:
                deleted += 1
        logger.info("cache_invalidated", tag=tag, keys_deleted=deleted)
        record_cache_operation("invalidate", "ok")
        return deleted

    async def stats(self) -> dict:
        return {
            "backend": "memory",
            "status": "connected",
            "hits": self._hits,
            "misses": self._misses,
            "keys": len(self._entries),
        }


class NullEventCache(EventCache):
    """Caching disabled: every read misses, writes and invalidations are no-ops."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(
        self,
        key: str,
        value: Any,
        tags: tuple[str, ...] = (),
        version: Optional[int] = None,
    ) -> bool:
        return False

    async def tag_version(self, tag: str) -> Optional[int]:
        return 0

    async def invalidate_tag(self, tag: str) -> int:
        return 0

    async def stats(self) -> dict:
        return {"backend": "none", "status": "disabled"}
