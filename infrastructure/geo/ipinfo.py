"""ipinfo.io implementation of LocationProvider (primary).

Payload: ``{"country": "US", "region": ..., "city": ..., "loc": "37.4,-122.1"}``.
Reserved ranges come back with ``"bogon": true`` and no location.
"""

from __future__ import annotations

from typing import Any

from infrastructure.geo.http_provider import HttpLocationProvider
from infrastructure.http_client import HttpClient
from schemas.models.geo import GeoLocation
from shared.geo_utils import country_display_name


class IpInfoProvider(HttpLocationProvider):
    name = "ipinfo"

    def __init__(
        self, http_client: HttpClient, base_url: str = "https://ipinfo.io", token: str = ""
    ) -> None:
        super().__init__(http_client)
        self._base_url = base_url.rstrip("/")
        self._token = token

    def _request(self, ip: str) -> tuple[str, dict[str, Any]]:
        params = {"token": self._token} if self._token else {}
        return f"{self._base_url}/{ip}/json", params

    def _parse(self, data: dict[str, Any]) -> GeoLocation:
        if data.get("bogon"):
            raise self._fail("bogon address")
        if "error" in data:
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise self._fail(f"provider error: {message}")

        latitude = longitude = None
        loc = data.get("loc")
        if isinstance(loc, str) and "," in loc:
            latitude, longitude = loc.split(",", 1)

        code = data.get("country")
        return GeoLocation(
            country=country_display_name(code, data.get("country_name")),
            country_code=code,
            region=data.get("region"),
            city=data.get("city"),
            latitude=latitude,
            longitude=longitude,
        )
