"""
Response DTOs for URL endpoints.

UrlResponse       — POST /api/url, GET /api/url, GET /api/url/{short_id} (owner)
PublicUrlResponse — GET /api/url/{short_id} for anyone but the owner

Field names are camelCase on the wire to match the existing front end.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.url import ShortUrlDoc


class UrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    short_id: str = Field(alias="shortId")
    original_url: str = Field(alias="originalUrl")
    user_id: Optional[str] = Field(default=None, alias="userId")
    title: str = ""
    is_temporary: bool = Field(alias="isTemporary")
    click_count: int = Field(alias="clickCount")
    created_at: datetime = Field(alias="createdAt")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")

    @classmethod
    def from_doc(cls, doc: ShortUrlDoc) -> "UrlResponse":
        return cls(
            short_id=doc.short_id,
            original_url=doc.original_url,
            user_id=doc.user_id,
            title=doc.title,
            is_temporary=doc.is_temporary,
            click_count=doc.click_count,
            created_at=doc.created_at,
            expires_at=doc.expires_at,
        )


class PublicUrlResponse(BaseModel):
    """Limited view of a URL that belongs to someone else."""

    model_config = ConfigDict(populate_by_name=True)

    short_id: str = Field(alias="shortId")
    original_url: str = Field(alias="originalUrl")
    click_count: int = Field(alias="clickCount")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_doc(cls, doc: ShortUrlDoc) -> "PublicUrlResponse":
        return cls(
            short_id=doc.short_id,
            original_url=doc.original_url,
            click_count=doc.click_count,
            created_at=doc.created_at,
        )
