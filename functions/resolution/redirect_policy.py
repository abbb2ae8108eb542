"""
Redirect policy: turn a chain or bootstrap result into exactly one destination.

Precedence:
    1. session entry URL   (/flow/run?cid=...)
    2. campaign fallback   (only for a reached campaign that cannot start a session)
    3. not-found page      (/not-found?error=<code>)
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlencode, urlparse

from shared.constants import (
    ERROR_NO_CAMPAIGN_DATA,
    FLOW_RUN_PATH,
    NOT_FOUND_PATH,
    PARAM_ACCESS_TOKEN,
    PARAM_CAMPAIGN_ID,
    PARAM_QR_CODE,
    PARAM_SESSION,
    PARAM_TEST,
)

from .lookup_chain import Campaign, ChainFailure, ChainResult, ChainSuccess
from .preview_bootstrap import BootstrapState, PreviewBootstrap

logger = logging.getLogger(__name__)

APP_BASE_URL = os.environ.get("APP_BASE_URL", "https://app.qrflow.dev").rstrip("/")


class OutcomeKind(Enum):
    SESSION = "session"
    FALLBACK = "fallback"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RedirectOutcome:
    kind: OutcomeKind
    location: str
    error: Optional[str] = None


def session_entry_url(
    campaign_id: str,
    access_token: Optional[str] = None,
    qr_code: Optional[str] = None,
    session_id: Optional[str] = None,
    test: bool = False,
) -> str:
    """Build the flow runtime entry URL. Optional parameters are omitted when unset."""
    params = [(PARAM_CAMPAIGN_ID, campaign_id)]
    if access_token:
        params.append((PARAM_ACCESS_TOKEN, access_token))
    if qr_code:
        params.append((PARAM_QR_CODE, qr_code))
    if session_id:
        params.append((PARAM_SESSION, session_id))
    if test:
        params.append((PARAM_TEST, "true"))
    return f"{APP_BASE_URL}{FLOW_RUN_PATH}?{urlencode(params)}"


def not_found_url(error: str, message: Optional[str] = None) -> str:
    params = [("error", error)]
    if message:
        params.append(("message", message))
    return f"{APP_BASE_URL}{NOT_FOUND_PATH}?{urlencode(params)}"


def not_found(error: str, message: Optional[str] = None) -> RedirectOutcome:
    return RedirectOutcome(OutcomeKind.NOT_FOUND, not_found_url(error, message), error=error)


def _usable_fallback(url: Optional[str]) -> Optional[str]:
    """Only absolute http(s) fallback URLs are followed."""
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        logger.warning(f"Ignoring non-http fallback URL: {url[:80]}")
        return None
    return url


def _fallback_or_not_found(campaign: Campaign, error: str) -> RedirectOutcome:
    fallback = _usable_fallback(campaign.fallback_url)
    if fallback:
        return RedirectOutcome(OutcomeKind.FALLBACK, fallback, error=error)
    return not_found(error)


def decide_scan_redirect(result: ChainResult) -> RedirectOutcome:
    """
    Choose the destination for a scan.

    A campaign that was reached but cannot start a session (archived, or
    stored without an id) falls back to its final redirect URL when one is
    configured, otherwise ends in no-campaign-data.
    """
    if isinstance(result, ChainSuccess):
        campaign = result.campaign
        if campaign.id and not campaign.archived:
            return RedirectOutcome(
                OutcomeKind.SESSION,
                session_entry_url(
                    campaign.id,
                    access_token=campaign.access_token,
                    qr_code=result.code,
                ),
            )
        return _fallback_or_not_found(campaign, ERROR_NO_CAMPAIGN_DATA)

    if isinstance(result, ChainFailure):
        return not_found(result.reason)

    raise TypeError(f"Unexpected chain result: {type(result).__name__}")


def decide_preview_redirect(bootstrap: PreviewBootstrap) -> RedirectOutcome:
    """Choose the destination for a finished preview bootstrap."""
    if bootstrap.state is BootstrapState.READY:
        if not bootstrap.campaign_id:
            return not_found(ERROR_NO_CAMPAIGN_DATA)
        return RedirectOutcome(
            OutcomeKind.SESSION,
            session_entry_url(
                bootstrap.campaign_id,
                session_id=bootstrap.session_id,
                test=True,
            ),
        )

    if bootstrap.state is not BootstrapState.REJECTED:
        raise ValueError(f"Bootstrap not finished: {bootstrap.state.value}")

    return not_found(bootstrap.reason, bootstrap.message)
