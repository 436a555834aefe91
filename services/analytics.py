"""
Analytics read model for a durable short URL.

get_analytics(short_id, requester_id) returns None both when the URL does
not exist and when it belongs to someone else, so the response never
reveals whether another user's link exists.

Views built from the stored clicks:
  countryStats      country name → click count ("Unknown" for blanks)
  countryCodeStats  country name → ISO2 code (last code seen wins)
  dailyClicks       exactly 30 UTC calendar days ending today, zeros included
  locationData      one map point per click with real coordinates

Clicks without coordinates but with an IP are re-resolved concurrently,
one lookup per distinct IP,
before locationData is built. This backfill works on copies, never
overwrites coordinates that are already valid, and is never written back.
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Sequence

from repositories.url_repository import UrlRepository
from schemas.dto.responses.analytics import AnalyticsResponse, DailyClicks, LocationPoint
from schemas.dto.responses.url import UrlResponse
from schemas.models.click import ClickDoc
from schemas.models.geo import UNKNOWN_COUNTRY, GeoLocation
from services.geolocation import GeolocationResolver
from shared.datetime_utils import utcnow
from shared.ip_utils import is_ip_address
from shared.logging import get_logger

log = get_logger(__name__)

DAILY_WINDOW_DAYS = 30


def build_country_stats(clicks: Iterable[ClickDoc]) -> dict[str, int]:
    counts: Counter[str] = Counter(click.country or UNKNOWN_COUNTRY for click in clicks)
    return dict(counts)


def build_country_code_stats(clicks: Iterable[ClickDoc]) -> dict[str, str]:
    codes: dict[str, str] = {}
    for click in clicks:
        if click.country_code:
            codes[click.country or UNKNOWN_COUNTRY] = click.country_code
    return codes


def build_daily_clicks(
    clicks: Iterable[ClickDoc], today: Optional[date] = None
) -> list[DailyClicks]:
    """Bucket clicks into the 30 UTC days ending with *today* (inclusive)."""
    today = today or utcnow().date()
    first_day = today - timedelta(days=DAILY_WINDOW_DAYS - 1)
    window_start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

    buckets = [0] * DAILY_WINDOW_DAYS
    for click in clicks:
        offset = (click.timestamp - window_start) // timedelta(days=1)
        if 0 <= offset < DAILY_WINDOW_DAYS:
            buckets[offset] += 1

    return [
        DailyClicks(date=(first_day + timedelta(days=i)).isoformat(), clicks=count)
        for i, count in enumerate(buckets)
    ]


def build_location_data(clicks: Iterable[ClickDoc]) -> list[LocationPoint]:
    return [
        LocationPoint(
            country=click.country,
            country_code=click.country_code,
            city=click.city,
            region=click.region,
            coordinates=(click.longitude, click.latitude),
            timestamp=click.timestamp,
        )
        for click in clicks
        if click.has_coordinates
    ]


def _needs_backfill(click: ClickDoc) -> bool:
    return not click.has_coordinates and is_ip_address(click.ip)


class AnalyticsAggregator:
    def __init__(self, repository: UrlRepository, resolver: GeolocationResolver) -> None:
        self._repo = repository
        self._resolver = resolver

    async def _resolve_for_backfill(self, ip: str) -> Optional[GeoLocation]:
        try:
            location = await self._resolver.resolve(ip)
        except Exception as e:
            log.warning("analytics_backfill_failed", error=str(e), error_type=type(e).__name__)
            return None
        return location if location.has_coordinates else None

    @staticmethod
    def _apply_location(click: ClickDoc, location: Optional[GeoLocation]) -> ClickDoc:
        if location is None:
            return click
        return click.model_copy(
            update={
                "latitude": location.latitude,
                "longitude": location.longitude,
                "country": click.country
                if click.country and click.country != UNKNOWN_COUNTRY
                else location.country,
                "country_code": click.country_code or location.country_code,
                "region": click.region or location.region,
                "city": click.city or location.city,
            }
        )

    async def backfill_coordinates(self, clicks: Sequence[ClickDoc]) -> list[ClickDoc]:
        """Return *clicks* with missing coordinates filled in where possible.

        Each distinct IP is resolved once, however many clicks share it.
        """
        pending: dict[str, list[int]] = defaultdict(list)
        for i, click in enumerate(clicks):
            if _needs_backfill(click):
                pending[click.ip].append(i)
        if not pending:
            return list(clicks)

        ips = list(pending)
        locations = await asyncio.gather(*(self._resolve_for_backfill(ip) for ip in ips))
        result = list(clicks)
        for ip, location in zip(ips, locations):
            for index in pending[ip]:
                result[index] = self._apply_location(clicks[index], location)
        log.debug(
            "analytics_backfill",
            attempted=sum(len(indexes) for indexes in pending.values()),
            distinct_ips=len(ips),
            resolved=sum(1 for location in locations if location is not None),
        )
        return result

    async def get_analytics(
        self, short_id: str, requester_id: Optional[str], today: Optional[date] = None
    ) -> Optional[AnalyticsResponse]:
        if not requester_id:
            return None
        url = await self._repo.find_owned(short_id, requester_id)
        if url is None:
            return None

        clicks = url.clicks
        located = await self.backfill_coordinates(clicks)

        return AnalyticsResponse(
            url=UrlResponse.from_doc(url),
            country_stats=build_country_stats(clicks),
            country_code_stats=build_country_code_stats(clicks),
            daily_clicks=build_daily_clicks(clicks, today),
            location_data=build_location_data(located),
            total_clicks=url.click_count,
        )
