"""
Random short id generator — pure, side-effect-free.
"""

from __future__ import annotations

import random
import string

_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


def generate_short_id(length: int = 6) -> str:
    """Generate an alphanumeric short id of configurable length.

    Args:
        length: Number of characters (default 6).

    Returns:
        Random alphanumeric string of the requested length.
    """
    return "".join(random.choice(_ALPHABET) for _ in range(length))
