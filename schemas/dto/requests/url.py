"""
Request DTOs for URL shortening endpoints.

Only shape is checked here; URL and custom id rules live in
shared.validators and are enforced by the service layer so that the
service gives the same answer regardless of the caller.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class CreateUrlRequest(BaseModel):
    """Request body for creating a new shortened URL.

    Accepts ``url`` as an alias for ``originalUrl``.
    """

    model_config = ConfigDict(populate_by_name=True)

    original_url: str = Field(
        validation_alias=AliasChoices("originalUrl", "original_url", "url")
    )
    custom_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("customId", "custom_id")
    )
    title: Optional[str] = None

    @field_validator("original_url")
    @classmethod
    def _strip_url(cls, v: str) -> str:
        return v.strip()

    @field_validator("custom_id", "title")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None
