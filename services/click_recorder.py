"""
Click recording for both storage scopes.

The target URL is looked up in the ephemeral store first and in MongoDB
second; an ephemeral entry shadows a durable one with the same id so an
anonymous visitor's click can never land on a registered user's record.

Ephemeral clicks are appended to the shared in-memory document under the
store's per-id lock. Durable clicks are a single atomic $push/$inc on the
URL document. Either way click_count == len(clicks) afterwards.

The redirect path records durable clicks through record_click_detached():
the task is owned by the recorder (strong reference until it finishes),
failures are logged and dropped, and drain() waits for stragglers on
shutdown.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from infrastructure.cache.ephemeral_urls import EphemeralUrlStore
from repositories.url_repository import UrlRepository
from schemas.models.click import ClickDoc
from schemas.models.geo import UNKNOWN_COUNTRY, UNKNOWN_COUNTRY_CODE, GeoLocation
from schemas.models.url import ShortUrlDoc
from services.geolocation import GeolocationResolver
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

_PLACEHOLDERS = {"", UNKNOWN_COUNTRY, UNKNOWN_COUNTRY_CODE}


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() not in _PLACEHOLDERS


def merge_geo(partial: Optional[GeoLocation], resolved: GeoLocation) -> GeoLocation:
    """Fill the gaps in *partial* from *resolved*; caller-supplied values win.

    Coordinates are taken as a pair: the partial pair is kept only when it
    is a real coordinate.
    """
    if partial is None:
        return resolved

    def pick(field: str) -> Optional[str]:
        value = getattr(partial, field)
        return value if _present(value) else getattr(resolved, field)

    if partial.has_coordinates:
        latitude, longitude = partial.latitude, partial.longitude
    else:
        latitude, longitude = resolved.latitude, resolved.longitude

    return GeoLocation(
        country=pick("country"),
        country_code=pick("country_code"),
        region=pick("region"),
        city=pick("city"),
        latitude=latitude,
        longitude=longitude,
    )


class ClickRecorder:
    def __init__(
        self,
        ephemeral_store: EphemeralUrlStore,
        repository: UrlRepository,
        resolver: GeolocationResolver,
    ) -> None:
        self._ephemeral = ephemeral_store
        self._repo = repository
        self._resolver = resolver
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _build_click(
        self,
        partial_geo: Optional[GeoLocation],
        ip: Optional[str],
        user_agent: Optional[str],
    ) -> ClickDoc:
        geo = partial_geo or GeoLocation()
        if not geo.has_coordinates and ip:
            resolved = await self._resolver.resolve(ip)
            geo = merge_geo(partial_geo, resolved)
        return ClickDoc.from_geo(geo, ip=ip, user_agent=user_agent)

    async def record_click(
        self,
        short_id: str,
        partial_geo: Optional[GeoLocation] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[ShortUrlDoc]:
        """Append one click to *short_id*. Returns the updated URL, or None if unknown."""
        if self._ephemeral.get(short_id) is not None:
            click = await self._build_click(partial_geo, ip, user_agent)
            url = await self._ephemeral.append_click(short_id, click)
            scope = "ephemeral"
        else:
            if not await self._repo.exists(short_id):
                log.info("click_target_not_found", short_id=short_id)
                return None
            click = await self._build_click(partial_geo, ip, user_agent)
            url = await self._repo.push_click(short_id, click)
            scope = "durable"

        if url is None:
            # removed (deleted or expired) while the location was being resolved
            log.info("click_target_vanished", short_id=short_id, scope=scope)
            return None

        log.debug(
            "click_recorded",
            short_id=short_id,
            scope=scope,
            ip=hash_ip(ip),
            country=click.country,
            click_count=url.click_count,
        )
        return url

    async def _record_logged(
        self,
        short_id: str,
        partial_geo: Optional[GeoLocation],
        ip: Optional[str],
        user_agent: Optional[str],
    ) -> Optional[ShortUrlDoc]:
        try:
            return await self.record_click(short_id, partial_geo, ip, user_agent)
        except Exception as e:
            log.error(
                "click_record_failed",
                short_id=short_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def record_click_detached(
        self,
        short_id: str,
        partial_geo: Optional[GeoLocation] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule record_click without waiting for it. Errors are logged, never raised."""
        task = asyncio.create_task(
            self._record_logged(short_id, partial_geo, ip, user_agent),
            name=f"record-click:{short_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all detached recordings to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
