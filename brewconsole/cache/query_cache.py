"""
Tag-indexed query cache.

Keeps the last server payload per query key, shares one network call between
concurrent readers of the same key, discards responses that were superseded
by a newer request for the same key, and marks entries stale when a mutation
invalidates one of the tags they provide.

Every request moves through a small lifecycle that listeners (the domain
slices) observe: ``PENDING`` followed by exactly one of ``FULFILLED``,
``REJECTED`` or ``ABORTED``.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Hashable, List, NamedTuple, Optional, Set

import structlog
from pydantic import BaseModel

from brewconsole.cache.tags import Tag, TagSpec, resolve_tags

logger = structlog.get_logger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


class QueryStatus(str, Enum):
    """Outcome of the last settled fetch of an entry."""

    UNINITIALIZED = "uninitialized"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class LifecyclePhase(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    ABORTED = "aborted"


class QueryKey(NamedTuple):
    endpoint: str
    arg: Hashable = None

    def __str__(self) -> str:
        return self.endpoint if self.arg is None else f"{self.endpoint}({self.arg!r})"


def normalize_arg(arg: Any) -> Hashable:
    """Turn a query argument into a stable, hashable cache key component."""
    if isinstance(arg, BaseModel):
        arg = arg.model_dump(mode="json", exclude_none=True)
    if isinstance(arg, dict):
        items = [(k, normalize_arg(v)) for k, v in arg.items() if v is not None]
        return tuple(sorted(items)) or None
    if isinstance(arg, (list, tuple)):
        return tuple(normalize_arg(v) for v in arg)
    return arg


@dataclass
class CacheEvent:
    """One step of a request's lifecycle."""

    request_id: int
    kind: str
    endpoint: str
    phase: LifecyclePhase
    arg: Any = None
    key: Optional[QueryKey] = None
    data: Any = None
    error: Optional[BaseException] = None


@dataclass
class CacheEntry:
    key: QueryKey
    arg: Any = None
    status: QueryStatus = QueryStatus.UNINITIALIZED
    data: Any = None
    error: Optional[BaseException] = None
    generation: int = 0
    request_seq: int = 0
    stale_seq: int = 0
    stale: bool = False
    fetching: bool = False
    tags: FrozenSet[Tag] = frozenset()
    fetch: Optional[Fetcher] = None
    provides: TagSpec = None
    subscribers: int = 0
    fulfilled_at: Optional[float] = None

    @property
    def is_current(self) -> bool:
        return self.status == QueryStatus.FULFILLED and not self.stale


class QuerySubscription:
    """
    A view's interest in one query key.

    Subscribed entries are refetched eagerly after invalidation. Closing the
    last subscription of a key abandons its in-flight fetch.
    """

    def __init__(self, cache: "QueryCache", key: QueryKey):
        self._cache = cache
        self.key = key
        self.closed = False

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._cache.entry(self.key)

    @property
    def data(self) -> Any:
        entry = self.entry
        return entry.data if entry else None

    async def refetch(self) -> Any:
        return await self._cache.refetch(self.key.endpoint, self.key.arg)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._cache._release(self.key)

    def __enter__(self) -> "QuerySubscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class QueryCache:
    """Query results keyed by ``(endpoint, arg)`` with tag-based invalidation."""

    def __init__(self, eager_refetch: bool = True):
        self.eager_refetch = eager_refetch
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._tag_index: Dict[Tag, Set[QueryKey]] = defaultdict(set)
        self._inflight: Dict[QueryKey, asyncio.Task] = {}
        self._listeners: List[Callable[[CacheEvent], None]] = []
        self._request_ids = itertools.count(1)

    # Listeners

    def add_listener(self, listener: Callable[[CacheEvent], None]) -> Callable[[], None]:
        """Register a lifecycle listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, event: CacheEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Cache listener failed", endpoint=event.endpoint, phase=event.phase.value)

    # Inspection

    def entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def get_entry(self, endpoint: str, arg: Any = None) -> Optional[CacheEntry]:
        return self._entries.get(QueryKey(endpoint, normalize_arg(arg)))

    def keys_for_tag(self, tag: Tag) -> Set[QueryKey]:
        return set(self._tag_index.get(tag, ()))

    def is_fetching(self, endpoint: str, arg: Any = None) -> bool:
        return QueryKey(endpoint, normalize_arg(arg)) in self._inflight

    def _entry_for(self, key: QueryKey, arg: Any) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key, arg=arg)
            self._entries[key] = entry
        return entry

    # Queries

    async def query(
        self,
        endpoint: str,
        arg: Any,
        fetch: Fetcher,
        provides: TagSpec = None,
        *,
        force: bool = False,
    ) -> Any:
        """
        Return the data for ``(endpoint, arg)``.

        Current entries are served from the cache. Otherwise the caller joins
        the in-flight fetch for the key, or a new fetch is started. ``force``
        always starts a new fetch, superseding any in-flight one.
        """
        key = QueryKey(endpoint, normalize_arg(arg))
        entry = self._entry_for(key, arg)
        entry.fetch = fetch
        entry.provides = provides

        if not force and entry.is_current:
            logger.debug("Cache hit", key=str(key), generation=entry.generation)
            return entry.data

        task = self._inflight.get(key)
        if task is not None and not force and entry.request_seq > entry.stale_seq:
            logger.debug("Joining in-flight fetch", key=str(key))
            return await asyncio.shield(task)

        return await asyncio.shield(self._start_fetch(entry))

    async def refetch(self, endpoint: str, arg: Any = None) -> Any:
        """Fetch a known entry again, superseding any in-flight request."""
        entry = self.get_entry(endpoint, arg)
        if entry is None or entry.fetch is None:
            raise KeyError(f"No query registered for {endpoint}")
        return await asyncio.shield(self._start_fetch(entry))

    def _start_fetch(self, entry: CacheEntry) -> asyncio.Task:
        entry.request_seq += 1
        entry.fetching = True
        seq = entry.request_seq
        request_id = next(self._request_ids)

        self._emit(
            CacheEvent(request_id, "query", entry.key.endpoint, LifecyclePhase.PENDING, arg=entry.arg, key=entry.key)
        )
        logger.debug("Fetch started", key=str(entry.key), seq=seq, request_id=request_id)

        task = asyncio.ensure_future(self._run_fetch(entry, seq, request_id, entry.fetch))
        self._inflight[entry.key] = task
        return task

    def _is_superseded(self, entry: CacheEntry, seq: int) -> bool:
        return seq != entry.request_seq or self._entries.get(entry.key) is not entry

    async def _run_fetch(self, entry: CacheEntry, seq: int, request_id: int, fetch: Fetcher) -> Any:
        me = asyncio.current_task()
        try:
            try:
                data = await fetch()
            except Exception as exc:
                if self._is_superseded(entry, seq):
                    return await self._discard(entry, seq, request_id, me, error=exc)
                self._settle(entry, seq, QueryStatus.REJECTED, None, exc)
                self._emit(
                    CacheEvent(
                        request_id, "query", entry.key.endpoint, LifecyclePhase.REJECTED,
                        arg=entry.arg, key=entry.key, error=exc,
                    )
                )
                raise

            if self._is_superseded(entry, seq):
                return await self._discard(entry, seq, request_id, me, data=data)

            self._settle(entry, seq, QueryStatus.FULFILLED, data, None)
            self._emit(
                CacheEvent(
                    request_id, "query", entry.key.endpoint, LifecyclePhase.FULFILLED,
                    arg=entry.arg, key=entry.key, data=data,
                )
            )
            return data
        finally:
            if self._inflight.get(entry.key) is me:
                del self._inflight[entry.key]
                entry.fetching = False

    async def _discard(
        self,
        entry: CacheEntry,
        seq: int,
        request_id: int,
        me: Optional[asyncio.Task],
        data: Any = None,
        error: Optional[BaseException] = None,
    ) -> Any:
        """Drop a superseded response; hand awaiters the newer result if one is coming."""
        logger.debug("Discarding superseded response", key=str(entry.key), seq=seq, latest=entry.request_seq)
        self._emit(
            CacheEvent(request_id, "query", entry.key.endpoint, LifecyclePhase.ABORTED, arg=entry.arg, key=entry.key)
        )

        newer = self._inflight.get(entry.key)
        if newer is not None and newer is not me and self._entries.get(entry.key) is entry:
            return await asyncio.shield(newer)
        if error is not None:
            raise error
        return data

    def _settle(
        self,
        entry: CacheEntry,
        seq: int,
        status: QueryStatus,
        data: Any,
        error: Optional[BaseException],
    ) -> None:
        entry.status = status
        entry.error = error
        if status == QueryStatus.FULFILLED:
            entry.data = data
            entry.generation += 1
            entry.fulfilled_at = time.monotonic()
        # Invalidated while in flight: the response predates the mutation
        entry.stale = seq <= entry.stale_seq
        self._reindex(entry, resolve_tags(entry.provides, data, error, entry.arg))

    def _reindex(self, entry: CacheEntry, tags: FrozenSet[Tag]) -> None:
        for tag in entry.tags - tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(entry.key)
                if not keys:
                    del self._tag_index[tag]
        for tag in tags:
            self._tag_index[tag].add(entry.key)
        entry.tags = tags

    # Mutations and invalidation

    async def mutate(
        self,
        endpoint: str,
        arg: Any,
        execute: Fetcher,
        invalidates: TagSpec = None,
        *,
        refetch: bool = True,
    ) -> Any:
        """
        Run a mutation and invalidate the tags it declares once it succeeds.

        With ``refetch=False`` the invalidated entries are only marked stale,
        even in eager mode.
        """
        request_id = next(self._request_ids)
        self._emit(CacheEvent(request_id, "mutation", endpoint, LifecyclePhase.PENDING, arg=arg))

        try:
            result = await execute()
        except Exception as exc:
            self._emit(CacheEvent(request_id, "mutation", endpoint, LifecyclePhase.REJECTED, arg=arg, error=exc))
            raise

        self._emit(CacheEvent(request_id, "mutation", endpoint, LifecyclePhase.FULFILLED, arg=arg, data=result))
        tags = resolve_tags(invalidates, result, None, arg)
        if refetch:
            await self.invalidate(tags)
        else:
            self.invalidate_tags(tags)
        return result

    def invalidate_tags(self, tags: FrozenSet[Tag]) -> List[QueryKey]:
        """Mark every entry providing one of ``tags`` as stale."""
        keys: Set[QueryKey] = set()
        for tag in tags:
            if tag.id is None:
                for indexed, indexed_keys in self._tag_index.items():
                    if indexed.type == tag.type:
                        keys |= indexed_keys
            else:
                keys |= self._tag_index.get(tag, set())

        for key in keys:
            entry = self._entries[key]
            entry.stale = True
            entry.stale_seq = entry.request_seq

        if tags:
            logger.debug("Tags invalidated", tags=sorted(str(t) for t in tags), entries=len(keys))
        return list(keys)

    async def invalidate(self, tags: FrozenSet[Tag]) -> List[QueryKey]:
        """Invalidate ``tags`` and, in eager mode, refetch subscribed entries."""
        keys = self.invalidate_tags(tags)
        if not self.eager_refetch:
            return keys

        active = [
            self._entries[key]
            for key in keys
            if self._entries[key].subscribers > 0 and self._entries[key].fetch is not None
        ]
        if active:
            results = await asyncio.gather(
                *(asyncio.shield(self._start_fetch(entry)) for entry in active),
                return_exceptions=True,
            )
            for entry, result in zip(active, results):
                if isinstance(result, BaseException):
                    logger.debug("Refetch after invalidation failed", key=str(entry.key), error=str(result))
        return keys

    # Subscriptions and cancellation

    def subscribe(self, endpoint: str, arg: Any = None) -> QuerySubscription:
        key = QueryKey(endpoint, normalize_arg(arg))
        self._entry_for(key, arg).subscribers += 1
        return QuerySubscription(self, key)

    def _release(self, key: QueryKey) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.subscribers = max(0, entry.subscribers - 1)
        if entry.subscribers == 0 and key in self._inflight:
            self._abandon_entry(entry)

    def abandon(self, endpoint: str, arg: Any = None) -> bool:
        """Discard the in-flight fetch of a key when it arrives. Returns True if one was pending."""
        entry = self.get_entry(endpoint, arg)
        if entry is None or entry.key not in self._inflight:
            return False
        self._abandon_entry(entry)
        return True

    def _abandon_entry(self, entry: CacheEntry) -> None:
        entry.request_seq += 1
        entry.fetching = False
        self._inflight.pop(entry.key, None)
        logger.debug("In-flight fetch abandoned", key=str(entry.key))

    def reset(self) -> None:
        """Forget everything; responses still in flight are discarded on arrival."""
        count = len(self._entries)
        self._entries.clear()
        self._tag_index.clear()
        self._inflight.clear()
        logger.info("Query cache reset", entries=count)
