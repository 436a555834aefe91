"""
Click sub-document model.

Clicks are embedded in their parent URL document (``clicks`` array) and
are append-only. Stored keys keep the camelCase names (``userAgent``,
``countryCode``) so existing documents stay readable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.geo import GeoLocation
from shared.datetime_utils import parse_datetime, utcnow
from shared.geo_utils import coerce_coordinate, has_valid_coordinates


class ClickDoc(BaseModel):
    """One recorded visit to a short URL."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(default_factory=utcnow)
    ip: str = "Unknown"
    user_agent: str = Field(default="Unknown", alias="userAgent")
    country: Optional[str] = "Unknown"
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    region: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _utc_timestamp(cls, v):
        return parse_datetime(v) or utcnow()

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, v):
        return coerce_coordinate(v)

    @field_validator("ip", "user_agent", mode="before")
    @classmethod
    def _default_unknown(cls, v):
        return v or "Unknown"

    @property
    def has_coordinates(self) -> bool:
        return has_valid_coordinates(self.latitude, self.longitude)

    @classmethod
    def from_geo(
        cls,
        geo: GeoLocation,
        *,
        ip: Optional[str],
        user_agent: Optional[str],
        timestamp: Optional[datetime] = None,
    ) -> "ClickDoc":
        return cls(
            timestamp=timestamp or utcnow(),
            ip=ip,
            user_agent=user_agent,
            country=geo.country or "Unknown",
            country_code=geo.country_code,
            region=geo.region,
            city=geo.city,
            latitude=geo.latitude,
            longitude=geo.longitude,
        )

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True)
