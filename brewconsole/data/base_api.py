"""Shared plumbing for the per-resource API clients."""

from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from brewconsole.cache.query_cache import QueryCache, QuerySubscription
from brewconsole.cache.tags import TagSpec
from brewconsole.core.exceptions import InvalidResponseError
from brewconsole.data.http_client import ApiClient

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_one(model: Type[ModelT], payload: Any, path: str = "") -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.error("Unexpected payload", model=model.__name__, path=path, errors=exc.error_count())
        raise InvalidResponseError(
            f"Unexpected {model.__name__} payload", details={"path": path, "errors": exc.errors()}
        )


def parse_many(model: Type[ModelT], payload: Any, path: str = "") -> List[ModelT]:
    try:
        return TypeAdapter(List[model]).validate_python(payload or [])
    except ValidationError as exc:
        logger.error("Unexpected list payload", model=model.__name__, path=path, errors=exc.error_count())
        raise InvalidResponseError(
            f"Unexpected {model.__name__} list payload", details={"path": path, "errors": exc.errors()}
        )


class ResourceApi:
    """
    Base for endpoint groups.

    Reads go through the query cache with the tags they provide; writes go
    through it with the tags they invalidate.
    """

    def __init__(self, http: ApiClient, cache: QueryCache):
        self.http = http
        self.cache = cache

    async def _query(
        self,
        endpoint: str,
        arg: Any,
        path: str,
        model: Type[ModelT],
        *,
        many: bool = False,
        provides: TagSpec = None,
        params: Optional[Dict[str, Any]] = None,
        force: bool = False,
    ) -> Any:
        async def fetch():
            payload = await self.http.get(path, params=params)
            if many:
                return parse_many(model, payload, path)
            return parse_one(model, payload, path)

        return await self.cache.query(endpoint, arg, fetch, provides, force=force)

    async def _mutate(
        self,
        endpoint: str,
        arg: Any,
        method: str,
        path: str,
        model: Optional[Type[ModelT]] = None,
        *,
        json_data: Optional[Any] = None,
        invalidates: TagSpec = None,
        on_success: Optional[Callable[[Any], None]] = None,
        refetch: bool = True,
    ) -> Any:
        async def execute():
            payload = await self.http.request(method, path, json_data=json_data)
            result = payload if model is None or payload is None else parse_one(model, payload, path)
            # Runs before the invalidation so eager refetches see its effects
            if on_success is not None:
                on_success(result)
            return result

        return await self.cache.mutate(endpoint, arg, execute, invalidates, refetch=refetch)

    def subscribe(self, endpoint: str, arg: Any = None) -> QuerySubscription:
        """Register a view's interest in one of this group's queries."""
        return self.cache.subscribe(endpoint, arg)
