"""
Unit test configuration.

- Patches dotenv so pydantic-settings never reads the project's real .env
  file during unit tests. Tests control config through monkeypatch.setenv().
- Provides an async facade over a mongomock collection so repository and
  service tests run real MongoDB update semantics without a server.
- Provides scriptable geolocation providers.
"""

import asyncio

import mongomock
import pytest

from errors import GeoProviderError
from infrastructure.cache.ephemeral_urls import EphemeralUrlStore
from infrastructure.cache.geo_cache import GeoCache
from repositories.url_repository import UrlRepository
from schemas.models.geo import GeoLocation
from services.geolocation import GeolocationResolver


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


# ── Mongo ─────────────────────────────────────────────────────────────────────


class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._cursor:
            yield doc


class AsyncCollection:
    """The subset of pymongo's AsyncCollection used by UrlRepository."""

    def __init__(self, collection):
        self.sync = collection

    async def create_index(self, *args, **kwargs):
        return self.sync.create_index(*args, **kwargs)

    async def find_one(self, *args, **kwargs):
        return self.sync.find_one(*args, **kwargs)

    async def insert_one(self, *args, **kwargs):
        return self.sync.insert_one(*args, **kwargs)

    async def find_one_and_update(self, *args, **kwargs):
        return self.sync.find_one_and_update(*args, **kwargs)

    async def find_one_and_delete(self, *args, **kwargs):
        return self.sync.find_one_and_delete(*args, **kwargs)

    def find(self, *args, **kwargs):
        return AsyncCursor(self.sync.find(*args, **kwargs))


@pytest.fixture
def urls_collection():
    return AsyncCollection(mongomock.MongoClient().db.urls)


@pytest.fixture
async def repository(urls_collection):
    repo = UrlRepository(urls_collection)
    await repo.ensure_indexes()
    return repo


# ── Geolocation ───────────────────────────────────────────────────────────────

GOOGLE_DNS = GeoLocation(
    country="United States",
    country_code="US",
    region="California",
    city="Mountain View",
    latitude=37.4,
    longitude=-122.1,
)

CLOUDFLARE_DNS = GeoLocation(
    country="Australia",
    country_code="AU",
    region="Queensland",
    city="Brisbane",
    latitude=-27.47,
    longitude=153.02,
)


class FakeProvider:
    """LocationProvider that returns a fixed answer, raises, or hangs."""

    def __init__(self, name="fake", result=None, error=None, delay=0.0):
        self.name = name
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def lookup(self, ip, timeout):
        self.calls.append(ip)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise GeoProviderError(self.name, "no data")
        return self.result


@pytest.fixture
def geo_cache():
    return GeoCache(max_entries=100)


@pytest.fixture
def primary():
    return FakeProvider(name="primary", result=GOOGLE_DNS)


@pytest.fixture
def secondary():
    return FakeProvider(name="secondary", result=CLOUDFLARE_DNS)


@pytest.fixture
def resolver(primary, secondary, geo_cache):
    return GeolocationResolver([primary, secondary], geo_cache, timeout=0.5)


@pytest.fixture
def ephemeral_store():
    return EphemeralUrlStore()


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider
