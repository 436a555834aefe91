"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs share the same env source and are composed in AppSettings.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "url-shortener"
    urls_collection: str = "urls"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the geolocation cache is process-local only
    redis_uri: Optional[str] = None


class GeoSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Upper bound for every outbound provider call
    geo_provider_timeout_seconds: float = 3.0

    ipinfo_url: str = "https://ipinfo.io"
    ipinfo_token: str = ""
    ip_api_url: str = "http://ip-api.com"

    # Optional local MaxMind database, tried before the HTTP providers
    geoip_city_db: str = ""

    geo_cache_max_entries: int = 10_000
    geo_cache_redis_ttl_seconds: int = 7 * 24 * 3600


class UrlSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    short_id_length: int = 6
    durable_url_ttl_days: int = 365
    ephemeral_url_ttl_hours: int = 24
    enforce_ephemeral_expiry: bool = True
    default_title_length: int = 50


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: Optional[str] = None  # unset: "json" in production, else "console"

    # Sampling rates (0.0–1.0)
    sample_rate_redirect: float = 0.05
    sample_rate_geo_cache: float = 0.01


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "shorly"
    app_url: str = "https://shorly.uk"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    geo: Optional[GeoSettings] = None
    urls: Optional[UrlSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.geo is None:
            self.geo = GeoSettings()
        if self.urls is None:
            self.urls = UrlSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
