"""Local MaxMind GeoLite2-City implementation of LocationProvider.

geoip2 reads from a local .mmdb file and is synchronous; calls are wrapped
in asyncio.to_thread() to avoid blocking the event loop.

The reader is lazy-loaded on first use (double-checked locking with
asyncio.Lock). A missing or corrupt database makes every lookup fail with
GeoProviderError so the resolver moves on to the HTTP providers.
"""

import asyncio
from typing import Optional

import geoip2.database
import geoip2.errors
import maxminddb

from errors import GeoProviderError
from schemas.models.geo import GeoLocation
from shared.geo_utils import country_display_name
from shared.logging import get_logger

log = get_logger(__name__)


class MaxMindProvider:
    name = "maxmind"

    def __init__(self, city_db_path: str) -> None:
        self._city_db_path = city_db_path
        self._reader: Optional[geoip2.database.Reader] = None
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _get_reader(self) -> Optional[geoip2.database.Reader]:
        if not self._loaded:
            async with self._lock:
                if not self._loaded:
                    try:
                        self._reader = await asyncio.to_thread(
                            geoip2.database.Reader, self._city_db_path
                        )
                    except (OSError, maxminddb.InvalidDatabaseError) as e:
                        log.warning(
                            "geoip_city_db_unavailable",
                            path=self._city_db_path,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        self._reader = None
                    self._loaded = True
        return self._reader

    async def lookup(self, ip: str, timeout: float) -> GeoLocation:
        reader = await self._get_reader()
        if reader is None:
            raise GeoProviderError(self.name, "database unavailable")
        try:
            result = await asyncio.to_thread(reader.city, ip)
        except geoip2.errors.AddressNotFoundError as e:
            raise GeoProviderError(self.name, "address not found") from e
        except (ValueError, maxminddb.InvalidDatabaseError) as e:
            raise GeoProviderError(self.name, f"lookup failed: {type(e).__name__}") from e

        code = result.country.iso_code
        subdivision = result.subdivisions.most_specific
        location = GeoLocation(
            country=country_display_name(code, result.country.name),
            country_code=code,
            region=subdivision.name if subdivision else None,
            city=result.city.name,
            latitude=result.location.latitude,
            longitude=result.location.longitude,
        )
        if not location.is_complete:
            raise GeoProviderError(self.name, "incomplete location")
        return location

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
