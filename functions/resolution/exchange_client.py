"""
Client for the trusted preview-token exchange.

The exchange verifies the token signature, provisions a test flow
session and returns its id with the campaign id.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from shared.errors import ExchangeError
from shared.http_client import get_http_client
from shared.logging_utils import log_external_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeResult:
    session_id: str
    campaign_id: str


def _exchange_url() -> str:
    # Read at runtime to allow tests to set this env var
    return os.environ.get("PREVIEW_EXCHANGE_URL", "https://api.qrflow.dev/preview/exchange")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or f"HTTP {response.status_code}"
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


async def exchange_preview_token(
    token: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ExchangeResult:
    """
    Exchange a preview token for a live test session.

    Args:
        token: Raw preview token
        client: Optional HTTP client (defaults to the shared client)

    Returns:
        ExchangeResult

    Raises:
        ExchangeError: on transport failure, non-2xx response or a response
            without session_id/campaign_id
    """
    client = client or get_http_client()
    start = time.time()

    try:
        response = await client.post(_exchange_url(), json={"token": token})
    except httpx.HTTPError as e:
        latency_ms = (time.time() - start) * 1000
        log_external_call(logger, "preview-exchange", "exchange", False, latency_ms, error=str(e))
        raise ExchangeError(f"Failed to start test session: {e}") from e

    latency_ms = (time.time() - start) * 1000

    if response.status_code >= 400:
        message = _error_message(response)
        log_external_call(logger, "preview-exchange", "exchange", False, latency_ms, error=message)
        raise ExchangeError(
            f"Failed to start test session: {message}",
            upstream_status=response.status_code,
        )

    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict) or not data.get("session_id") or not data.get("campaign_id"):
        log_external_call(
            logger, "preview-exchange", "exchange", False, latency_ms, error="invalid response"
        )
        raise ExchangeError("Invalid response from test session service")

    log_external_call(logger, "preview-exchange", "exchange", True, latency_ms)
    return ExchangeResult(session_id=str(data["session_id"]), campaign_id=str(data["campaign_id"]))
