"""
Cache tags and the helpers that describe what a query provides or what a
mutation invalidates.

A tag is ``(type, id)``. ``id`` is a real record id, the ``LIST`` sentinel
for "the collection as a whole", or ``None`` which, when invalidated, matches
every tag of that type.
"""

from __future__ import annotations

from typing import Any, Callable, FrozenSet, Iterable, NamedTuple, Optional, Sequence, Union

LIST = "LIST"


class Tag(NamedTuple):
    type: str
    id: Optional[Union[int, str]] = None

    def __str__(self) -> str:
        return self.type if self.id is None else f"{self.type}:{self.id}"


TagFactory = Callable[[Any, Optional[BaseException], Any], Iterable[Tag]]
TagSpec = Union[Sequence[Tag], TagFactory, None]


def resolve_tags(spec: TagSpec, result: Any, error: Optional[BaseException], arg: Any) -> FrozenSet[Tag]:
    """Evaluate a tag spec against a request outcome."""
    if spec is None:
        return frozenset()
    if callable(spec):
        return frozenset(t for t in spec(result, error, arg) if t is not None)
    return frozenset(spec)


def _record_id(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("id")
    return getattr(record, "id", None)


def provides_list(item_type: str, list_type: str) -> TagFactory:
    """One tag per returned record plus the collection's LIST tag."""

    def factory(result, error, arg):
        tags = [Tag(list_type, LIST)]
        if result:
            tags.extend(Tag(item_type, _record_id(r)) for r in result if _record_id(r) is not None)
        return tags

    return factory


def provides_item(item_type: str) -> TagFactory:
    """The tag of the requested record, keyed by the query argument."""

    def factory(result, error, arg):
        return [Tag(item_type, arg)]

    return factory


def invalidates_list(list_type: str) -> Sequence[Tag]:
    return (Tag(list_type, LIST),)


def invalidates_item(item_type: str, list_type: str, id_of: Callable[[Any], Any] = lambda arg: arg) -> TagFactory:
    """The changed record and its collection; ``id_of`` picks the id out of the argument."""

    def factory(result, error, arg):
        return [Tag(item_type, id_of(arg)), Tag(list_type, LIST)]

    return factory
