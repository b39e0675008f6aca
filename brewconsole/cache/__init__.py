"""
Client-side cache for BrewConsole.

Tags describe what a query provides and what a mutation invalidates; the
query cache dedupes, sequences and invalidates fetches accordingly.
"""

from .query_cache import CacheEntry, CacheEvent, LifecyclePhase, QueryCache, QueryKey, QueryStatus, QuerySubscription
from .tags import LIST, Tag

__all__ = [
    "CacheEntry",
    "CacheEvent",
    "LIST",
    "LifecyclePhase",
    "QueryCache",
    "QueryKey",
    "QueryStatus",
    "QuerySubscription",
    "Tag",
]
