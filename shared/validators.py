"""
URL and input validators — framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import validators as _validators

_SHORT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

MIN_CUSTOM_ID_LENGTH = 3
MAX_CUSTOM_ID_LENGTH = 32


def validate_url(url: str) -> bool:
    """Return True if *url* is a valid absolute HTTP/S URL.

    ``localhost`` and bare IP hosts are accepted; the redirect target is the
    owner's choice.
    """
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    return bool(_validators.url(url, simple_host=True))


def validate_short_id(short_id: str) -> bool:
    """Return True if *short_id* is a usable custom id.

    Only alphanumerics, ``-`` and ``_`` are allowed, 3 to 32 characters.
    """
    if not (MIN_CUSTOM_ID_LENGTH <= len(short_id) <= MAX_CUSTOM_ID_LENGTH):
        return False
    return bool(_SHORT_ID_PATTERN.match(short_id))
