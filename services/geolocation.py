"""
IP → GeoLocation resolution with caching and provider fallback.

resolve(ip) never raises and never waits on a provider longer than
``timeout`` seconds:

1. Empty, localhost, loopback or private address → development fallback
   location. No provider call, no cache write.
2. Anything that is not an IP address at all → Unknown location.
3. Cache hit → cached value, unchanged.
4. Providers in order, each under asyncio.wait_for(timeout). The first
   complete answer (country, code, real coordinates) is cached and
   returned.
5. All providers failed → Unknown location, NOT cached, so a later call
   tries the providers again.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from errors import GeoProviderError
from infrastructure.cache.geo_cache import GeoCache
from infrastructure.geo.protocol import LocationProvider
from schemas.models.geo import GeoLocation
from shared.ip_utils import is_ip_address, is_private_ip
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 3.0


class GeolocationResolver:
    def __init__(
        self,
        providers: Sequence[LocationProvider],
        cache: GeoCache,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    ) -> None:
        self.providers = list(providers)
        self.cache = cache
        self.timeout = timeout

    async def resolve(self, ip: str | None) -> GeoLocation:
        if is_private_ip(ip):
            log.debug("geo_private_ip", ip=ip)
            return GeoLocation.development_fallback()

        ip = ip.strip()
        if not is_ip_address(ip):
            log.debug("geo_not_an_ip", value=ip[:64])
            return GeoLocation.unknown()

        try:
            cached = await self.cache.get(ip)
        except Exception as e:
            log.error("geo_cache_lookup_failed", ip=hash_ip(ip), error=str(e))
            cached = None
        if cached is not None:
            if should_sample("geo_cache_hit"):
                log.debug("geo_cache_hit", ip=hash_ip(ip))
            return cached

        for provider in self.providers:
            location = await self._try_provider(provider, ip)
            if location is not None:
                try:
                    await self.cache.set(ip, location)
                except Exception as e:
                    log.error("geo_cache_store_failed", ip=hash_ip(ip), error=str(e))
                return location

        log.warning(
            "geo_resolution_failed",
            ip=hash_ip(ip),
            providers=[p.name for p in self.providers],
        )
        return GeoLocation.unknown()

    async def _try_provider(self, provider: LocationProvider, ip: str) -> GeoLocation | None:
        try:
            location = await asyncio.wait_for(
                provider.lookup(ip, self.timeout), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            log.warning(
                "geo_provider_failed",
                provider=provider.name,
                ip=hash_ip(ip),
                reason="timeout",
                timeout=self.timeout,
            )
            return None
        except GeoProviderError as e:
            log.warning(
                "geo_provider_failed",
                provider=provider.name,
                ip=hash_ip(ip),
                reason=e.reason,
            )
            return None
        except Exception as e:
            log.error(
                "geo_provider_error",
                provider=provider.name,
                ip=hash_ip(ip),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if not location.is_complete:
            log.warning(
                "geo_provider_failed",
                provider=provider.name,
                ip=hash_ip(ip),
                reason="incomplete location",
            )
            return None
        return location
