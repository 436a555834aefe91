"""LocationProvider protocol — the resolver depends on this, not the concrete providers."""

from typing import Protocol

from schemas.models.geo import GeoLocation


class LocationProvider(Protocol):
    name: str

    async def lookup(self, ip: str, timeout: float) -> GeoLocation:
        """Return a location for *ip* or raise GeoProviderError."""
        ...
