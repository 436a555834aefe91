"""ip-api.com implementation of LocationProvider (secondary).

Free tier is HTTP only and rate limited to 45 requests/minute; a throttled
client gets HTTP 429. Failures come back as ``{"status": "fail", "message": ...}``.
"""

from __future__ import annotations

from typing import Any

from infrastructure.geo.http_provider import HttpLocationProvider
from infrastructure.http_client import HttpClient
from schemas.models.geo import GeoLocation
from shared.geo_utils import country_display_name

_FIELDS = "status,message,country,countryCode,regionName,city,lat,lon"


class IpApiProvider(HttpLocationProvider):
    name = "ip-api"

    def __init__(self, http_client: HttpClient, base_url: str = "http://ip-api.com") -> None:
        super().__init__(http_client)
        self._base_url = base_url.rstrip("/")

    def _request(self, ip: str) -> tuple[str, dict[str, Any]]:
        return f"{self._base_url}/json/{ip}", {"fields": _FIELDS}

    def _parse(self, data: dict[str, Any]) -> GeoLocation:
        if data.get("status") == "fail":
            raise self._fail(f"provider error: {data.get('message') or 'lookup failed'}")

        code = data.get("countryCode")
        return GeoLocation(
            country=country_display_name(code, data.get("country")),
            country_code=code,
            region=data.get("regionName"),
            city=data.get("city"),
            latitude=data.get("lat"),
            longitude=data.get("lon"),
        )
