"""Rate limiting for the Sweaquity backend.

Requests carrying a valid access token are limited per user, so several
people behind one office NAT do not share a bucket. Anonymous requests fall
back to the client IP, honoring X-Forwarded-For only from trusted proxies.
"""

import ipaddress
from functools import lru_cache

from fastapi import HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings
from .logging_config import get_logger

logger = get_logger("sweaquity.api.rate_limit")

# Limit tiers shared by the routers
READ_LIMIT = "60/minute"
WRITE_LIMIT = "30/minute"
STATE_CHANGE_LIMIT = "20/minute"
DESTRUCTIVE_LIMIT = "10/minute"


@lru_cache
def trusted_networks() -> tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...]:
    """Parse the configured proxy CIDRs, skipping malformed entries."""
    networks = []
    for cidr in get_settings().trusted_proxy_cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr.strip(), strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr}")
    return tuple(networks)


def client_ip(request) -> str:
    """Resolve the caller's IP, trusting X-Forwarded-For only behind a known proxy."""
    direct_ip = get_remote_address(request)
    try:
        trusted = any(ipaddress.ip_address(direct_ip) in net for net in trusted_networks())
    except ValueError:
        trusted = False

    if trusted:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return direct_ip


def rate_limit_key(request) -> str:
    """Key by user id when the request is authenticated, otherwise by IP."""
    from .auth import AUTH_COOKIE_NAME, decode_token

    header = request.headers.get("authorization", "")
    token = header[7:] if header.lower().startswith("bearer ") else request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        try:
            user_id = decode_token(token, get_settings()).get("sub")
        except HTTPException:
            user_id = None
        if user_id:
            return f"user:{user_id}"
    return f"ip:{client_ip(request)}"


limiter = Limiter(key_func=rate_limit_key)
