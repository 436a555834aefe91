"""Shared async HTTP client for outbound provider calls."""

from typing import Any, Optional

import httpx


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a default timeout.

    Geolocation providers share one instance (and its connection pool); each
    call may still pass its own ``timeout``.
    """

    def __init__(
        self,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        user_agent: str = "shorly-geo/1.0",
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
        )

    async def get(
        self, url: str, *, timeout: Optional[float] = None, **kwargs: Any
    ) -> httpx.Response:
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self._client.get(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
