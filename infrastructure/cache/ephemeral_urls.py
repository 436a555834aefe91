"""In-process store for anonymous (ephemeral) short URLs.

Ephemeral URLs are never persisted: they live in this map until the
process restarts or they expire. Clicks are appended to the shared
ShortUrlDoc in place, so every reader in the process sees them at once.

Appends take a per-short-id asyncio.Lock so that the append-and-recount
stays a single step even if a future change adds an await inside it.

Expiry is checked lazily on read when ``enforce_expiry`` is set; there
is no background reaper, ``purge_expired()`` exists for callers that want
to reclaim memory explicitly.
"""

import asyncio
from datetime import datetime
from typing import Optional

from schemas.models.click import ClickDoc
from schemas.models.url import ShortUrlDoc
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


class EphemeralUrlStore:
    def __init__(self, enforce_expiry: bool = True) -> None:
        self.enforce_expiry = enforce_expiry
        self._urls: dict[str, ShortUrlDoc] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._urls)

    def _lock_for(self, short_id: str) -> asyncio.Lock:
        lock = self._locks.get(short_id)
        if lock is None:
            lock = self._locks[short_id] = asyncio.Lock()
        return lock

    def _evict(self, short_id: str) -> None:
        self._urls.pop(short_id, None)
        self._locks.pop(short_id, None)

    def set(self, url: ShortUrlDoc) -> None:
        self._urls[url.short_id] = url

    def add(self, url: ShortUrlDoc) -> bool:
        """Store *url* only if its id is free. Returns False when a live entry already holds it."""
        if self.get(url.short_id) is not None:
            return False
        self._urls[url.short_id] = url
        return True

    def get(self, short_id: str, now: Optional[datetime] = None) -> Optional[ShortUrlDoc]:
        url = self._urls.get(short_id)
        if url is None:
            return None
        if self.enforce_expiry and url.is_expired(now):
            log.info("ephemeral_url_expired", short_id=short_id)
            self._evict(short_id)
            return None
        return url

    def contains(self, short_id: str) -> bool:
        return self.get(short_id) is not None

    async def append_click(self, short_id: str, click: ClickDoc) -> Optional[ShortUrlDoc]:
        """Append *click* to the stored URL. Returns None if the id is unknown or expired."""
        if self.get(short_id) is None:
            return None
        async with self._lock_for(short_id):
            url = self.get(short_id)
            if url is None:
                return None
            url.append_click(click)
            return url

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        expired = [sid for sid, url in self._urls.items() if url.is_expired(now)]
        for short_id in expired:
            self._evict(short_id)
        return len(expired)
