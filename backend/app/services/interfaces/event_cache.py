"""
Event list cache interface.
Every mutation of the events table notifies the cache through `invalidate_events`.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

EVENT_LIST_KEY = "events:list"
EVENTS_TAG = "events"


class EventCache(ABC):
    """
    Tag-addressable cache for serialized event listings.

    Each tag carries a version that `invalidate_tag` bumps. A reader that
    snapshots the version before loading from the database passes it to
    `set`, and the write is skipped when an invalidation landed in between,
    so a listing read before a commit never outlives that commit's flush.

    Implementations:
    - RedisEventCache: shared between workers, TTL-bound entries
    - InMemoryEventCache: process-local, for development and tests
    - NullEventCache: caching disabled
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached JSON-compatible value, or None on a miss."""
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        tags: tuple[str, ...] = (),
        version: Optional[int] = None,
    ) -> bool:
        """
        Store a JSON-compatible value and attach it to the given tags.
        With `version`, store only while every tag is still at that version.
        Returns whether the value was stored.
        """
        pass

    @abstractmethod
    async def tag_version(self, tag: str) -> Optional[int]:
        """Current version of `tag`, or None when it can't be read."""
        pass

    @abstractmethod
    async def invalidate_tag(self, tag: str) -> int:
        """Bump the tag version and drop every entry attached to `tag`. Returns how many keys were removed."""
        pass

    @abstractmethod
    async def stats(self) -> dict:
        pass

    async def close(self) -> None:
        pass

    async def get_event_list(self) -> Optional[list[dict]]:
        return await self.get(EVENT_LIST_KEY)

    async def event_list_version(self) -> Optional[int]:
        return await self.tag_version(EVENTS_TAG)

    async def set_event_list(self, events: list[dict], version: Optional[int] = None) -> bool:
        return await self.set(EVENT_LIST_KEY, events, tags=(EVENTS_TAG,), version=version)

    async def invalidate_events(self) -> int:
        return await self.invalidate_tag(EVENTS_TAG)
