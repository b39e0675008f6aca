"""
Reactive per-resource state.

A slice never issues requests. It listens to query cache lifecycle events for
the endpoints it cares about and folds them into a list, a selected record, a
loading flag and the last error.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog

from brewconsole.cache.query_cache import CacheEvent, LifecyclePhase
from brewconsole.core.exceptions import error_message

logger = structlog.get_logger(__name__)


class Operation(str, Enum):
    """How a fulfilled request of an endpoint changes the slice."""

    LIST = "list"
    ITEM = "item"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def record_id(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("id")
    return getattr(record, "id", None)


class ResourceSlice:
    """
    Base class for domain slices.

    Subclasses declare ``endpoints``: endpoint name -> (operation, fallback
    error message).
    """

    name = "resource"
    endpoints: Dict[str, Tuple[Operation, str]] = {}

    def __init__(self):
        self.items: List[Any] = []
        self.selected: Any = None
        self.error: Optional[str] = None
        self._pending: Set[int] = set()
        self._latest: Dict[Operation, Optional[int]] = {Operation.LIST: None, Operation.ITEM: None}

    @property
    def is_loading(self) -> bool:
        return bool(self._pending)

    def deleted_id(self, arg: Any) -> Any:
        """Record id a delete request refers to."""
        return arg

    # Event handling

    def handle(self, event: CacheEvent) -> None:
        handler = self.endpoints.get(event.endpoint)
        if handler is None:
            return
        operation, fallback = handler

        if event.phase == LifecyclePhase.PENDING:
            self._pending.add(event.request_id)
            self.error = None
            if operation in self._latest:
                self._latest[operation] = event.request_id
            return

        self._pending.discard(event.request_id)
        if event.phase == LifecyclePhase.ABORTED:
            return

        if operation in self._latest and self._latest[operation] != event.request_id:
            logger.debug("Ignoring outdated response", slice=self.name, endpoint=event.endpoint)
            return

        if event.phase == LifecyclePhase.REJECTED:
            self.error = error_message(event.error, fallback)
            logger.debug("Request failed", slice=self.name, endpoint=event.endpoint, error=self.error)
            return

        self._apply(operation, event)

    __call__ = handle

    def _apply(self, operation: Operation, event: CacheEvent) -> None:
        data = event.data
        if operation == Operation.LIST:
            self.items = list(data or [])
        elif operation == Operation.ITEM:
            self.selected = data
        elif operation == Operation.CREATE:
            self._upsert(data)
        elif operation == Operation.UPDATE:
            self._replace(data)
        elif operation == Operation.DELETE:
            deleted = self.deleted_id(event.arg)
            if self.selected is not None and record_id(self.selected) == deleted:
                self.selected = None

    def _upsert(self, record: Any) -> None:
        if record is None:
            return
        rid = record_id(record)
        for index, existing in enumerate(self.items):
            if record_id(existing) == rid:
                self.items[index] = record
                return
        self.items.append(record)

    def _replace(self, record: Any) -> None:
        if record is None:
            return
        rid = record_id(record)
        self.items = [record if record_id(item) == rid else item for item in self.items]
        if self.selected is not None and record_id(self.selected) == rid:
            self.selected = record

    # Local reducers

    def set_selected(self, record: Any) -> None:
        self.selected = record
        # A fetch started for the previous selection must not overwrite this one
        self._latest[Operation.ITEM] = None

    def clear_selected(self) -> None:
        self.set_selected(None)

    def clear_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        self.items = []
        self.selected = None
        self.error = None
        self._pending.clear()
        self._latest = {Operation.LIST: None, Operation.ITEM: None}

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} items={len(self.items)} selected={record_id(self.selected)!r} "
            f"loading={self.is_loading} error={self.error!r}>"
        )
