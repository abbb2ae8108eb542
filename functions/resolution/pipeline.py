"""
Entry points for the two resolution paths.

Both return a RedirectOutcome and never raise: any unexpected fault on the
scan path becomes a processing-error not-found outcome.
"""

import logging
from typing import Optional

from shared.constants import ERROR_MISSING_CODE, ERROR_PROCESSING
from shared.logging_utils import mask_code

from .lookup_chain import run_lookup_chain
from .preview_bootstrap import Exchange, PreviewBootstrap
from .redirect_policy import (
    RedirectOutcome,
    decide_preview_redirect,
    decide_scan_redirect,
    not_found,
)
from .scan_accounting import ScanAccountant

logger = logging.getLogger(__name__)


def resolve_scan(
    code: Optional[str],
    accountant: Optional[ScanAccountant] = None,
) -> RedirectOutcome:
    """
    Resolve a scanned code to its redirect.

    Args:
        code: Scanned unique code (None/empty yields missing-code)
        accountant: Scan accountant (defaults to a new ScanAccountant)

    Returns:
        RedirectOutcome
    """
    if not code:
        return not_found(ERROR_MISSING_CODE)

    accountant = accountant or ScanAccountant()

    try:
        result = run_lookup_chain(code, on_code_found=accountant.record)
        outcome = decide_scan_redirect(result)
    except Exception as e:
        logger.exception(
            f"Error processing QR redirect for {mask_code(code)}: {e}",
        )
        return not_found(ERROR_PROCESSING)

    logger.info(
        f"Resolved {mask_code(code)} -> {outcome.kind.value}",
        extra={"outcome": outcome.kind.value, "error_code": outcome.error},
    )
    return outcome


async def bootstrap_preview(
    token: Optional[str],
    exchange: Optional[Exchange] = None,
    now: Optional[float] = None,
) -> tuple[PreviewBootstrap, RedirectOutcome]:
    """
    Run the preview bootstrap and pick the redirect for its final state.

    Returns:
        (finished bootstrap, outcome)
    """
    bootstrap = PreviewBootstrap(token=token)
    await bootstrap.run(exchange=exchange, now=now)
    return bootstrap, decide_preview_redirect(bootstrap)
