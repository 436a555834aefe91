"""
Client IP resolution and classification.

``get_client_ip`` takes an explicit ``Request`` so it is testable without a
running server. ``is_private_ip`` / ``is_ip_address`` decide whether an
address may be sent to an external geolocation provider.
"""

from __future__ import annotations

import ipaddress

from fastapi import Request

DEFAULT_CLIENT_IP = "127.0.0.1"


def get_client_ip(request: Request) -> str:
    """Extract the client IP from a FastAPI ``Request``.

    Checks proxy headers in priority order before falling back to the
    direct connection address:

    1. ``X-Forwarded-For`` — standard proxy header (first IP in list)
    2. ``X-Real-IP`` — nginx / other reverse proxies

    Returns:
        The resolved client IP string, or ``"127.0.0.1"`` if none is known.
    """
    for header in ("X-Forwarded-For", "X-Real-IP"):
        ip_value: str | None = request.headers.get(header)
        if ip_value:
            client_ip = ip_value.split(",")[0].strip()
            if client_ip:
                return client_ip

    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_CLIENT_IP


def is_ip_address(value: str) -> bool:
    """Return True if *value* parses as an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(value.strip())
    except ValueError:
        return False
    return True


def is_private_ip(ip: str | None) -> bool:
    """Return True for addresses that must never reach a geolocation provider.

    Covers empty values, ``localhost``, loopback, private ranges
    (10/8, 172.16/12, 192.168/16, fc00::/7) and link-local addresses.
    Non-IP strings return False; callers check ``is_ip_address`` for those.
    """
    if not ip or not ip.strip():
        return True
    value = ip.strip()
    if value.lower() == "localhost":
        return True
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return False
    return addr.is_loopback or addr.is_private or addr.is_link_local
