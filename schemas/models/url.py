"""
Short URL document model.

Maps to the `urls` MongoDB collection for durable URLs. Ephemeral
(anonymous) URLs use the same model but only ever live in the in-process
EphemeralUrlStore.

Invariant: click_count == len(clicks). Every append goes through
append_click() (in memory) or an atomic $push/$inc (in MongoDB).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from schemas.models.base import MongoBaseModel
from schemas.models.click import ClickDoc
from shared.datetime_utils import parse_datetime, utcnow


class LifecycleClass(str, Enum):
    EPHEMERAL = "ephemeral"
    DURABLE = "durable"


class ShortUrlDoc(MongoBaseModel):
    """Document model for the `urls` collection."""

    short_id: str = Field(alias="shortId")
    original_url: str = Field(alias="originalUrl")
    user_id: Optional[str] = Field(default=None, alias="userId")
    title: str = ""
    is_temporary: bool = Field(default=False, alias="isTemporary")
    clicks: list[ClickDoc] = Field(default_factory=list)
    click_count: int = Field(default=0, alias="clickCount")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")

    @field_validator("created_at", "expires_at", mode="before")
    @classmethod
    def _utc(cls, v):
        return parse_datetime(v)

    @property
    def lifecycle(self) -> LifecycleClass:
        if self.is_temporary or self.user_id is None:
            return LifecycleClass.EPHEMERAL
        return LifecycleClass.DURABLE

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.user_id == user_id

    def append_click(self, click: ClickDoc) -> None:
        """Append in memory and keep click_count in sync. Not thread/task safe on its own."""
        self.clicks.append(click)
        self.click_count = len(self.clicks)
