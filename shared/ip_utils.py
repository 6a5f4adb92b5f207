"""
Client IP resolution for the per-IP auth limiter.

The service usually runs behind a CDN or reverse proxy, so the socket peer
is the proxy; the original client is read from forwarding headers first.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

# Checked in order; the first non-empty value wins
FORWARDING_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def _first_hop(value: Optional[str]) -> str:
    """Return the left-most address of a comma-separated header value."""
    if not value:
        return ""
    return value.split(",")[0].strip()


def get_client_ip(request: Request) -> str:
    """Return the client IP for *request*, or ``""`` when unknown."""
    for header in FORWARDING_HEADERS:
        client_ip = _first_hop(request.headers.get(header))
        if client_ip:
            return client_ip
    return request.client.host if request.client else ""
