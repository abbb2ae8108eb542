"""Shared request utilities for API handlers."""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

# Fragments never reach the server; the front-end shim forwards location.hash here
ROUTE_FRAGMENT_HEADER = os.environ.get("ROUTE_FRAGMENT_HEADER", "X-Route-Fragment")


def get_header(event: dict, name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def get_query(event: dict) -> dict:
    """Query string parameters (API Gateway sends None when there are none)."""
    return event.get("queryStringParameters") or {}


def get_route_fragment(event: dict) -> Optional[str]:
    """Route fragment forwarded by the client, if any."""
    return get_header(event, ROUTE_FRAGMENT_HEADER)


def get_client_ip(event: dict) -> str:
    """Extract client IP from API Gateway's verified source.

    Uses requestContext.identity.sourceIp, which API Gateway sets and
    clients cannot spoof.
    """
    source_ip = (event.get("requestContext") or {}).get("identity", {}).get("sourceIp")
    if source_ip:
        return source_ip

    logger.warning("Missing sourceIp in requestContext - possible misconfiguration")
    return "unknown"
