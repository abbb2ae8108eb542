"""
QR Redirect Endpoint - GET /q/{code}

Resolves a scanned QR code to the customer flow, the campaign's fallback
URL, or the not-found page, and redirects there.

Example: /q/ABC123 -> /flow/run?cid=C1&qr=ABC123
"""

import time

from resolution.params import resolve_params
from resolution.pipeline import resolve_scan
from resolution.scan_accounting import ScanAccountant
from shared.constants import PARAM_QR_CODE
from shared.logging_utils import (
    configure_structured_logging,
    log_api_request,
    mask_code,
    set_request_id,
)
from shared.metrics import emit_outcome_metric
from shared.request_utils import get_client_ip, get_query, get_route_fragment
from shared.response_utils import redirect_response

logger = configure_structured_logging()


def _extract_code(event: dict):
    path_params = event.get("pathParameters") or {}
    code = (path_params.get("code") or "").strip()
    if code:
        return code

    # /q?qr=ABC123 or a hash-routed /#/q?qr=ABC123 forwarded by the client
    params = resolve_params([PARAM_QR_CODE, "code"], get_query(event), get_route_fragment(event))
    value = params[PARAM_QR_CODE] or params["code"]
    return value.strip() if value else None


def handler(event, context):
    """
    Lambda handler for GET /q/{code}.

    Always answers with a 302. Scan counting runs in the background and
    never alters the redirect; the handler waits a bounded time for it
    before returning.
    """
    start_time = time.time()
    set_request_id(event)

    code = _extract_code(event)
    logger.info(
        f"QR redirect request for code: {mask_code(code)}",
        extra={"client_ip": get_client_ip(event)},
    )

    accountant = ScanAccountant()
    outcome = resolve_scan(code, accountant=accountant)
    accountant.flush()
    emit_outcome_metric("ScanResolution", outcome.kind.value)

    latency_ms = (time.time() - start_time) * 1000
    log_api_request(logger, "GET", "/q/{code}", 302, latency_ms, outcome=outcome.kind.value)

    return redirect_response(outcome.location)
