"""
Service interfaces.
"""

from .event_cache import EventCache, EVENT_LIST_KEY, EVENTS_TAG

__all__ = ['EventCache', 'EVENT_LIST_KEY', 'EVENTS_TAG']
