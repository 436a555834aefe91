"""
Durable short URL storage on the MongoDB `urls` collection.

Every method maps between raw documents and ShortUrlDoc so callers never
see storage dicts. Click appends use a single find_one_and_update with
$push + $inc: MongoDB applies it atomically to the one document, so
concurrent redirects on the same URL cannot drop each other's click or
desynchronise clickCount.
"""

from __future__ import annotations

from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from schemas.models.click import ClickDoc
from schemas.models.url import ShortUrlDoc
from shared.logging import get_logger

log = get_logger(__name__)


class UrlRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("shortId", ASCENDING)], unique=True)
        await self._col.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
        log.info("url_indexes_ensured")

    async def find_by_short_id(self, short_id: str) -> Optional[ShortUrlDoc]:
        doc = await self._col.find_one({"shortId": short_id})
        return ShortUrlDoc.from_mongo(doc)

    async def find_owned(self, short_id: str, user_id: str) -> Optional[ShortUrlDoc]:
        doc = await self._col.find_one({"shortId": short_id, "userId": user_id})
        return ShortUrlDoc.from_mongo(doc)

    async def exists(self, short_id: str) -> bool:
        doc = await self._col.find_one({"shortId": short_id}, {"_id": 1})
        return doc is not None

    async def insert(self, url: ShortUrlDoc) -> ShortUrlDoc:
        """Insert *url*. Raises pymongo DuplicateKeyError if the short id is taken."""
        data = url.to_mongo()
        data["clickCount"] = len(data.get("clicks", []))
        result = await self._col.insert_one(data)
        url.id = result.inserted_id
        url.click_count = data["clickCount"]
        return url

    async def push_click(self, short_id: str, click: ClickDoc) -> Optional[ShortUrlDoc]:
        doc = await self._col.find_one_and_update(
            {"shortId": short_id},
            {"$push": {"clicks": click.to_mongo()}, "$inc": {"clickCount": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return ShortUrlDoc.from_mongo(doc)

    async def delete_owned(self, short_id: str, user_id: str) -> Optional[ShortUrlDoc]:
        doc = await self._col.find_one_and_delete({"shortId": short_id, "userId": user_id})
        return ShortUrlDoc.from_mongo(doc)

    async def list_by_owner(self, user_id: str) -> list[ShortUrlDoc]:
        cursor = self._col.find({"userId": user_id}).sort("createdAt", DESCENDING)
        return [ShortUrlDoc.from_mongo(doc) async for doc in cursor]
