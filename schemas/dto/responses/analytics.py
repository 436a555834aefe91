"""
Response DTO for GET /api/url/{short_id}/analytics.

The field names (countryStats, countryCodeStats, dailyClicks, locationData,
totalClicks) are consumed verbatim by the dashboard and must not change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.dto.responses.url import UrlResponse


class DailyClicks(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str  # YYYY-MM-DD
    clicks: int


class LocationPoint(BaseModel):
    """One geocoded click for the map; coordinates are [longitude, latitude]."""

    model_config = ConfigDict(populate_by_name=True)

    country: Optional[str] = None
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    city: Optional[str] = None
    region: Optional[str] = None
    coordinates: tuple[float, float]
    timestamp: datetime


class AnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: UrlResponse
    country_stats: dict[str, int] = Field(alias="countryStats")
    country_code_stats: dict[str, str] = Field(alias="countryCodeStats")
    daily_clicks: list[DailyClicks] = Field(alias="dailyClicks")
    location_data: list[LocationPoint] = Field(alias="locationData")
    total_clicks: int = Field(alias="totalClicks")
