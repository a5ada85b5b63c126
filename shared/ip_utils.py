"""
Client IP and hostname resolution for FastAPI requests.

The verify endpoint lets integrators forward the end user's address in the
request body (``ipAddress``); otherwise the address is taken from proxy
headers or the socket peer.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

# Checked in priority order before falling back to the socket peer
PROXY_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request) -> str:
    """Extract the real client IP from a FastAPI ``Request``.

    ``X-Forwarded-For`` may carry a chain; the first (client-most) entry wins.

    Returns:
        The resolved client IP string, or ``""`` if none can be found.
    """
    for header in PROXY_HEADERS:
        value: Optional[str] = request.headers.get(header)
        if value:
            client_ip = value.split(",")[0].strip()
            if client_ip:
                return client_ip

    return request.client.host if request.client else ""


def resolve_client_ip(request: Request, supplied: Optional[str] = None) -> str:
    """Prefer an explicitly supplied address over the one seen on the wire."""
    if supplied and supplied.strip():
        return supplied.strip()
    return get_client_ip(request)


def get_hostname(request: Request) -> str:
    """Hostname the request was addressed to, without the port."""
    return request.url.hostname or request.headers.get("host", "").split(":")[0]
