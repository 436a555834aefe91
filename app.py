"""
FastAPI application factory.
create_app() is the single entry point for building the app.

Process-wide state (geo cache, ephemeral URL store, HTTP client, Mongo
client) is built once in the lifespan and hung off app.state; handlers
reach it through dependencies.py, tests build their own instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import AsyncMongoClient

from config import AppSettings, GeoSettings
from errors import register_error_handlers
from infrastructure.cache.ephemeral_urls import EphemeralUrlStore
from infrastructure.cache.geo_cache import GeoCache
from infrastructure.geo.ip_api import IpApiProvider
from infrastructure.geo.ipinfo import IpInfoProvider
from infrastructure.geo.maxmind import MaxMindProvider
from infrastructure.geo.protocol import LocationProvider
from infrastructure.http_client import HttpClient
from repositories.url_repository import UrlRepository
from routes.health_routes import router as health_router
from routes.redirect_routes import router as redirect_router
from routes.url_routes import router as url_router
from services.analytics import AnalyticsAggregator
from services.click_recorder import ClickRecorder
from services.geolocation import GeolocationResolver
from services.url_service import UrlService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_providers(geo: GeoSettings, http_client: HttpClient) -> list[LocationProvider]:
    """Ordered provider chain: local MaxMind (if configured), ipinfo.io, ip-api.com."""
    providers: list[LocationProvider] = []
    if geo.geoip_city_db and Path(geo.geoip_city_db).is_file():
        providers.append(MaxMindProvider(geo.geoip_city_db))
    elif geo.geoip_city_db:
        log.warning("geoip_city_db_missing", path=geo.geoip_city_db)
    providers.append(IpInfoProvider(http_client, geo.ipinfo_url, geo.ipinfo_token))
    providers.append(IpApiProvider(http_client, geo.ip_api_url))
    return providers


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, is_production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        # Redis is optional; without it the geo cache stays in-process
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )
        app.state.redis = redis_client

        http_client = HttpClient(timeout=settings.geo.geo_provider_timeout_seconds)
        providers = build_providers(settings.geo, http_client)

        geo_cache = GeoCache(
            max_entries=settings.geo.geo_cache_max_entries,
            redis_client=redis_client,
            redis_ttl_seconds=settings.geo.geo_cache_redis_ttl_seconds,
        )
        resolver = GeolocationResolver(
            providers, geo_cache, timeout=settings.geo.geo_provider_timeout_seconds
        )
        ephemeral_store = EphemeralUrlStore(
            enforce_expiry=settings.urls.enforce_ephemeral_expiry
        )
        repository = UrlRepository(app.state.db[settings.db.urls_collection])
        await repository.ensure_indexes()

        app.state.geo_cache = geo_cache
        app.state.ephemeral_store = ephemeral_store
        app.state.url_service = UrlService(repository, ephemeral_store, settings.urls)
        app.state.click_recorder = ClickRecorder(ephemeral_store, repository, resolver)
        app.state.analytics = AnalyticsAggregator(repository, resolver)

        log.info(
            "app_started",
            providers=[p.name for p in providers],
            redis=redis_client is not None,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await app.state.click_recorder.drain()
        await http_client.aclose()
        for provider in providers:
            if isinstance(provider, MaxMindProvider):
                provider.close()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(url_router)
    # catch-all /{short_id} must come last
    app.include_router(redirect_router)

    return app
