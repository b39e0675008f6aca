"""
Application context.

One ConsoleContext wires a console session together: settings, the session
store and its storage, the HTTP client, the query cache, the per-resource
API clients, the domain slices and the auth lifecycle with its route guard.
Nothing here is a module-level singleton; tests build as many contexts as
they need.
"""

from typing import Optional

import httpx
import structlog

from brewconsole.cache.query_cache import QueryCache
from brewconsole.core.config import Settings, get_settings
from brewconsole.data.auth_api import AuthApi
from brewconsole.data.brands_api import BrandsApi
from brewconsole.data.http_client import ApiClient
from brewconsole.data.locations_api import LocationsApi
from brewconsole.data.menu_api import MenuApi
from brewconsole.data.storage import JsonFileStorage, KeyValueStorage
from brewconsole.data.users_api import UsersApi
from brewconsole.services.auth_lifecycle import AuthLifecycle, AuthPhase
from brewconsole.services.route_guard import RouteGuard
from brewconsole.services.session_store import SessionStore
from brewconsole.slices.store import ConsoleStore

logger = structlog.get_logger(__name__)


class ConsoleContext:
    """Everything one signed-in (or signing-in) console session needs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[KeyValueStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.storage = storage or JsonFileStorage(self.settings.session.storage_path)
        self.session = SessionStore(self.storage)

        self.http = ApiClient(self.settings.api, self.session, transport=transport)
        self.cache = QueryCache(eager_refetch=self.settings.cache.eager_refetch)

        self.auth = AuthApi(self.http, self.cache, self.session)
        self.brands = BrandsApi(self.http, self.cache)
        self.locations = LocationsApi(self.http, self.cache)
        self.menus = MenuApi(self.http, self.cache)
        self.users = UsersApi(self.http, self.cache)

        self.store = ConsoleStore()
        self.store.attach(self.cache)

        self.lifecycle = AuthLifecycle(self.session, self.auth)
        self.guard = RouteGuard(self.lifecycle, self.session)

    async def start(self) -> AuthPhase:
        """Hydrate and validate the persisted session."""
        phase = await self.lifecycle.initialize()
        logger.debug("Console context started", phase=phase.value)
        return phase

    async def sign_out(self) -> None:
        """Sign out and forget every cached response and slice state."""
        await self.lifecycle.sign_out()
        self.cache.reset()
        self.store.reset()

    async def aclose(self) -> None:
        self.store.detach()
        await self.http.aclose()

    async def __aenter__(self) -> "ConsoleContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
