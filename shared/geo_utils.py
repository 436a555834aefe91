"""
Coordinate and country helpers shared by providers, models and analytics.
"""

from __future__ import annotations

import math
from typing import Any, Optional

import pycountry

# Display names that stay fixed whatever the provider calls the country
PINNED_NAMES: dict[str, str] = {
    "US": "United States",
    "GB": "United Kingdom",
}


def coerce_coordinate(value: Any) -> Optional[float]:
    """Convert a latitude/longitude value to ``float``.

    Strings are parsed, ``None``/empty/unparseable/NaN/inf values return ``None``.
    Booleans are rejected because ``float(True)`` is a meaningless 1.0.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def has_valid_coordinates(latitude: Any, longitude: Any) -> bool:
    """True only if both coordinates are present numbers and not NaN.

    The ``(0, 0)`` pair is the stored "unresolved" marker and is not valid.
    """
    for value in (latitude, longitude):
        if value is None or isinstance(value, bool):
            return False
        if not isinstance(value, (int, float)):
            return False
        if math.isnan(value):
            return False
    return not (latitude == 0 and longitude == 0)


def country_display_name(code: Optional[str], name: Optional[str] = None) -> Optional[str]:
    """Pick the display name for a country from its ISO2 code and provider name.

    Pinned names win, then the provider's own name, then the ISO 3166 name
    for the code, then the bare code.
    """
    upper = code.strip().upper() if code else None
    if upper in PINNED_NAMES:
        return PINNED_NAMES[upper]
    if name:
        return name
    if not upper:
        return None
    country = pycountry.countries.get(alpha_2=upper)
    return country.name if country is not None else upper
