"""
Short URL lifecycle: create, look up, list and delete.

Anonymous callers get an ephemeral URL (in-process only, short TTL).
Signed-in callers get a durable URL stored in MongoDB. Lookups check the
ephemeral store first so it shadows any durable URL with the same id.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pymongo.errors import DuplicateKeyError

from config import UrlSettings
from errors import ConflictError, ValidationError
from infrastructure.cache.ephemeral_urls import EphemeralUrlStore
from repositories.url_repository import UrlRepository
from schemas.models.url import ShortUrlDoc
from shared.datetime_utils import utcnow
from shared.generators import generate_short_id
from shared.logging import get_logger
from shared.validators import validate_short_id, validate_url

log = get_logger(__name__)

MAX_ID_ATTEMPTS = 5
CUSTOM_ID_IN_USE = "Custom ID already in use"


class UrlService:
    def __init__(
        self,
        repository: UrlRepository,
        ephemeral_store: EphemeralUrlStore,
        settings: Optional[UrlSettings] = None,
    ) -> None:
        self._repo = repository
        self._ephemeral = ephemeral_store
        self._settings = settings or UrlSettings()

    async def _id_taken(self, short_id: str) -> bool:
        return self._ephemeral.get(short_id) is not None or await self._repo.exists(short_id)

    async def _new_short_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            short_id = generate_short_id(self._settings.short_id_length)
            if not await self._id_taken(short_id):
                return short_id
        raise ConflictError("Could not allocate a unique short id, please retry")

    async def create_short_url(
        self,
        original_url: str,
        custom_id: Optional[str] = None,
        user_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> ShortUrlDoc:
        if not validate_url(original_url):
            raise ValidationError("Invalid URL format", field="originalUrl")
        if custom_id is not None:
            if not validate_short_id(custom_id):
                raise ValidationError(
                    "Custom ID must be 3-32 letters, digits, '-' or '_'",
                    field="customId",
                )
            if await self._id_taken(custom_id):
                raise ConflictError(CUSTOM_ID_IN_USE, field="customId")

        short_id = custom_id or await self._new_short_id()
        now = utcnow()
        is_temporary = user_id is None
        ttl = (
            timedelta(hours=self._settings.ephemeral_url_ttl_hours)
            if is_temporary
            else timedelta(days=self._settings.durable_url_ttl_days)
        )
        url = ShortUrlDoc(
            short_id=short_id,
            original_url=original_url,
            user_id=user_id,
            title=title or original_url[: self._settings.default_title_length],
            is_temporary=is_temporary,
            created_at=now,
            expires_at=now + ttl,
        )

        if is_temporary:
            if not self._ephemeral.add(url):
                # another create claimed the id while exists() was awaited
                raise ConflictError(CUSTOM_ID_IN_USE, field="customId")
        else:
            try:
                url = await self._repo.insert(url)
            except DuplicateKeyError:
                # lost a race with another insert of the same id
                raise ConflictError(CUSTOM_ID_IN_USE, field="customId")

        log.info(
            "url_created",
            short_id=short_id,
            scope=url.lifecycle.value,
            custom_id=custom_id is not None,
        )
        return url

    async def get_url(self, short_id: str) -> Optional[ShortUrlDoc]:
        url = self._ephemeral.get(short_id)
        if url is not None:
            return url
        return await self._repo.find_by_short_id(short_id)

    async def list_user_urls(self, user_id: Optional[str]) -> list[ShortUrlDoc]:
        if not user_id:
            return []
        return await self._repo.list_by_owner(user_id)

    async def delete_url(self, short_id: str, user_id: Optional[str]) -> Optional[ShortUrlDoc]:
        if not user_id:
            return None
        deleted = await self._repo.delete_owned(short_id, user_id)
        if deleted is not None:
            log.info("url_deleted", short_id=short_id)
        return deleted
