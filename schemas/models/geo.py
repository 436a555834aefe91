"""
GeoLocation value model.

Produced by the geolocation resolver and copied by value into a click.
Never stored on its own.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.geo_utils import coerce_coordinate, has_valid_coordinates

UNKNOWN_COUNTRY = "Unknown"
UNKNOWN_COUNTRY_CODE = "XX"


class GeoLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    country: Optional[str] = None
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    region: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, v):
        return coerce_coordinate(v)

    @property
    def has_coordinates(self) -> bool:
        return has_valid_coordinates(self.latitude, self.longitude)

    @property
    def is_complete(self) -> bool:
        """Whether a provider answer is usable: country, code and coordinates."""
        return bool(self.country and self.country_code and self.has_coordinates)

    @classmethod
    def unknown(cls) -> "GeoLocation":
        return cls(
            country=UNKNOWN_COUNTRY,
            country_code=UNKNOWN_COUNTRY_CODE,
            region="",
            city="",
            latitude=0.0,
            longitude=0.0,
        )

    @classmethod
    def development_fallback(cls) -> "GeoLocation":
        """Fixed location used for loopback/private addresses."""
        return cls(
            country="United States",
            country_code="US",
            region="California",
            city="San Francisco",
            latitude=37.7749,
            longitude=-122.4194,
        )
