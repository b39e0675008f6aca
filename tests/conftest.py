"""Configure pytest fixtures and environment for BrewConsole tests."""

import pytest
from dotenv import load_dotenv

from brewconsole.context import ConsoleContext
from brewconsole.core.config import ApiConfig, CacheConfig, SessionConfig, Settings, reset_settings
from brewconsole.data.storage import MemoryStorage
from fake_backend import FakeBackend

BASE_URL = "http://api.brewconsole.test"


def pytest_sessionstart(session):
    """Load environment variables from a local .env, if any."""
    load_dotenv()


@pytest.fixture(autouse=True)
def fresh_settings():
    """Never let one test's settings leak into the next."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api=ApiConfig(base_url=BASE_URL, timeout=5.0, max_retries=2, backoff_max=0.2),
        session=SessionConfig(storage_path=tmp_path / "session.json"),
        cache=CacheConfig(eager_refetch=True),
    )


@pytest.fixture
def make_context(backend, storage, settings):
    """Build a ConsoleContext talking to the fake backend."""

    def factory(**overrides) -> ConsoleContext:
        return ConsoleContext(
            settings=overrides.get("settings", settings),
            storage=overrides.get("storage", storage),
            transport=backend.transport(),
        )

    return factory


@pytest.fixture
def owner(backend):
    return backend.add_user("owner@beans.test", "COFFEE_SHOP_OWNER", first="Olive", last="Owner")


@pytest.fixture
def signed_in_storage(backend, storage, owner):
    """Storage holding a valid persisted session for the owner."""
    tokens = backend.issue_tokens(owner["id"])
    storage.set_item("token", tokens["accessToken"])
    storage.set_item("refreshToken", tokens["refreshToken"])
    storage.set_item("user", '{"id": %d, "email": "%s", "role": "%s"}' % (owner["id"], owner["email"], owner["role"]))
    return storage
