"""Base class for JSON-over-HTTP geolocation providers.

Subclasses supply the request URL/params and a payload parser; this class
owns the transport concerns so every provider fails the same way:

- timeout, connection error      → GeoProviderError("timeout"/"network error")
- HTTP 429                       → GeoProviderError("rate limited")
- other non-2xx                  → GeoProviderError("status NNN")
- body that is not a JSON object → GeoProviderError("malformed payload")
- parsed location incomplete     → GeoProviderError("incomplete location")
"""

from __future__ import annotations

from typing import Any

import httpx

from errors import GeoProviderError
from infrastructure.http_client import HttpClient
from schemas.models.geo import GeoLocation


class HttpLocationProvider:
    name = "http"

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    def _request(self, ip: str) -> tuple[str, dict[str, Any]]:
        raise NotImplementedError

    def _parse(self, data: dict[str, Any]) -> GeoLocation:
        raise NotImplementedError

    def _fail(self, reason: str) -> GeoProviderError:
        return GeoProviderError(self.name, reason)

    async def lookup(self, ip: str, timeout: float) -> GeoLocation:
        url, params = self._request(ip)
        try:
            response = await self._http.get(url, params=params, timeout=timeout)
        except httpx.TimeoutException as e:
            raise self._fail("timeout") from e
        except httpx.HTTPError as e:
            raise self._fail(f"network error: {type(e).__name__}") from e

        if response.status_code == 429:
            raise self._fail("rate limited")
        if not 200 <= response.status_code < 300:
            raise self._fail(f"status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise self._fail("malformed payload") from e
        if not isinstance(data, dict):
            raise self._fail("malformed payload")

        location = self._parse(data)
        if not location.is_complete:
            raise self._fail("incomplete location")
        return location
