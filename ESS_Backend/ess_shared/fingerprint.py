"""
Per-client rate-limit key.

The fingerprint is SHA-256("{ip}-{user_agent}") in hex. It only buckets traffic for
the rate limiter; it is not an identity and is never used for authorization.
"""

import hashlib
from typing import Optional

from starlette.requests import Request

from ESS_Backend.ess_shared import config


def fingerprint(ip: Optional[str], user_agent: Optional[str]) -> str:
    ip = ip or config.FALLBACK_IP
    user_agent = user_agent or config.FALLBACK_USER_AGENT
    return hashlib.sha256(f"{ip}-{user_agent}".encode("utf-8")).hexdigest()


def client_identity(request: Request, ip_header: Optional[str] = config.CLIENT_IP_HEADER) -> tuple[Optional[str], Optional[str]]:
    """Return (ip, user_agent) as seen on the request.

    The proxy header wins over the socket peer; either may be missing.
    """
    ip = request.headers.get(ip_header) if ip_header else None
    if not ip and request.client is not None:
        ip = request.client.host
    return ip, request.headers.get("user-agent")
