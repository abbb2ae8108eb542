"""
Flow Entry Context Endpoint - GET /flow/run/context

Resolves the session-entry parameters for the flow runtime from the query
string and the forwarded route fragment, query string taking precedence.
"""

from resolution.params import resolve_params
from shared.constants import (
    PARAM_ACCESS_TOKEN,
    PARAM_CAMPAIGN_ID,
    PARAM_CAMPAIGN_ID_ALIAS,
    PARAM_QR_CODE,
    PARAM_SESSION,
    PARAM_TEST,
)
from shared.logging_utils import configure_structured_logging, set_request_id
from shared.request_utils import get_query, get_route_fragment
from shared.response_utils import error_response, get_origin, success_response

logger = configure_structured_logging()

ENTRY_PARAMS = [
    PARAM_CAMPAIGN_ID,
    PARAM_CAMPAIGN_ID_ALIAS,
    PARAM_ACCESS_TOKEN,
    PARAM_QR_CODE,
    PARAM_SESSION,
    PARAM_TEST,
    "debugFlow",
    "trace",
]


def handler(event, context):
    """
    Lambda handler for GET /flow/run/context.

    Returns:
        200 with the resolved entry context
        400 missing_campaign when neither a campaign nor a session is given
    """
    set_request_id(event)
    origin = get_origin(event)

    params = resolve_params(ENTRY_PARAMS, get_query(event), get_route_fragment(event))

    campaign_id = params[PARAM_CAMPAIGN_ID] or params[PARAM_CAMPAIGN_ID_ALIAS]
    session_id = params[PARAM_SESSION]

    if not campaign_id and not session_id:
        return error_response(
            400,
            "missing_campaign",
            "A campaign id (cid) or session id is required",
            origin=origin,
        )

    context_data = {
        "campaign_id": campaign_id,
        "access_token": params[PARAM_ACCESS_TOKEN],
        "qr_code": params[PARAM_QR_CODE],
        "session_id": session_id,
        "is_test": params[PARAM_TEST] == "true",
        "debug_flow": params["debugFlow"] == "1",
        "trace": params["trace"] == "1",
    }

    return success_response(context_data, headers={"Cache-Control": "no-store"}, origin=origin)
