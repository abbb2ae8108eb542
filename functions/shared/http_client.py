"""
Shared HTTP Client with Connection Pooling.

Provides a reusable httpx.AsyncClient for calls to trusted collaborators
(the preview token exchange). Warm Lambda containers reuse the pooled
connection instead of paying a TLS handshake per preview link.

Testing:
    Set USE_CONNECTION_POOLING=false to get a fresh client per call,
    which lets tests swap in an httpx.MockTransport.
"""

import asyncio
import logging
import os
from typing import Optional

import httpx

from .constants import EXCHANGE_TIMEOUT

logger = logging.getLogger(__name__)

# Global client instance (lazy-initialized)
_client: Optional[httpx.AsyncClient] = None
_client_loop_id: Optional[int] = None  # Track which event loop the client was created on

DEFAULT_TIMEOUT = httpx.Timeout(
    EXCHANGE_TIMEOUT,
    connect=5.0,
)

DEFAULT_LIMITS = httpx.Limits(
    max_connections=20,
    max_keepalive_connections=5,
    keepalive_expiry=30.0,
)


def _use_connection_pooling() -> bool:
    """Check if connection pooling is enabled (runtime check)."""
    return os.environ.get("USE_CONNECTION_POOLING", "true").lower() == "true"


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=DEFAULT_TIMEOUT,
        limits=DEFAULT_LIMITS,
        follow_redirects=False,
        http2=False,
    )


def get_http_client() -> httpx.AsyncClient:
    """
    Get an HTTP client for making requests.

    The shared client is recreated if the event loop changes (Lambda creates
    a new loop per invocation while reusing the execution context).

    Returns:
        httpx.AsyncClient configured for the environment
    """
    global _client, _client_loop_id

    if not _use_connection_pooling():
        return _new_client()

    try:
        current_loop_id = id(asyncio.get_running_loop())
    except RuntimeError:
        current_loop_id = None

    if _client is not None and _client_loop_id != current_loop_id:
        logger.debug("Event loop changed, recreating HTTP client")
        _client = None

    if _client is None:
        logger.debug("Initializing shared HTTP client with connection pooling")
        _client = _new_client()
        _client_loop_id = current_loop_id

    return _client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _client

    if _client is not None:
        await _client.aclose()
        _client = None
        logger.debug("Closed shared HTTP client")
