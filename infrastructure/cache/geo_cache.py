"""IP → GeoLocation cache.

Two tiers:
  1. In-process LRU, bounded by ``max_entries``. Always present.
  2. Redis, optional. Shares resolved locations between workers. Entries
     are JSON (not pickle) with a TTL; a Redis hit is promoted into the LRU.

Entries are keyed by the raw IP string. Only complete locations are ever
written (the resolver never caches the Unknown result). Concurrent writers
for the same key are harmless: last write wins and values for one IP are
equivalent. All LRU operations run on the event loop thread without
awaiting, so no lock is needed.
"""

import json
from collections import OrderedDict
from typing import Optional

import redis.asyncio as aioredis

from schemas.models.geo import GeoLocation
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class GeoCache:
    def __init__(
        self,
        max_entries: int = 10_000,
        redis_client: Optional[aioredis.Redis] = None,
        redis_ttl_seconds: int = 7 * 24 * 3600,
    ) -> None:
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, GeoLocation]" = OrderedDict()
        self._redis = redis_client
        self.redis_ttl_seconds = redis_ttl_seconds

    def _key(self, ip: str) -> str:
        return f"geo_cache:{ip}"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, ip: str) -> bool:
        return ip in self._entries

    def _remember(self, ip: str, location: GeoLocation) -> None:
        self._entries[ip] = location
        self._entries.move_to_end(ip)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("geo_cache_evicted", ip=hash_ip(evicted))

    async def get(self, ip: str) -> Optional[GeoLocation]:
        location = self._entries.get(ip)
        if location is not None:
            self._entries.move_to_end(ip)
            return location

        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._key(ip))
            if raw is None:
                return None
            location = GeoLocation.model_validate(json.loads(raw))
        except Exception as e:
            log.warning("geo_cache_get_error", ip=hash_ip(ip), error=str(e))
            return None
        self._remember(ip, location)
        return location

    async def set(self, ip: str, location: GeoLocation) -> None:
        self._remember(ip, location)
        if self._redis is None:
            return
        try:
            await self._redis.setex(
                self._key(ip),
                self.redis_ttl_seconds,
                location.model_dump_json(by_alias=True),
            )
        except Exception as e:
            log.error("geo_cache_set_error", ip=hash_ip(ip), error=str(e))

    def clear(self) -> None:
        self._entries.clear()
