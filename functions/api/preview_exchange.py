"""
Preview Exchange Endpoint - POST /preview/exchange

Trusted side of the preview flow. Verifies a signed preview token,
provisions a test flow session for its campaign and returns the ids.

Request body:
{
    "token": "<header>.<payload>.<signature>"
}
"""

import json
import uuid

from botocore.exceptions import ClientError

from resolution.preview_token import TokenRejection, validate_preview_token, verify_signature
from shared import dynamo
from shared.constants import REJECT_EXPIRED_TOKEN, REJECT_WRONG_MODE
from shared.errors import StoreUnavailableError
from shared.logging_utils import configure_structured_logging, set_request_id
from shared.response_utils import error_response, get_origin, success_response
from shared.secrets import get_preview_token_secret

logger = configure_structured_logging()


def handler(event, context):
    """
    Lambda handler for POST /preview/exchange.

    Returns:
        200 {"success": true, "session_id", "campaign_id", "brand_id", "is_test": true}
        400/401/404/500/503 error bodies otherwise
    """
    set_request_id(event)
    origin = get_origin(event)

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        return error_response(400, "invalid_json", "Request body must be valid JSON", origin=origin)

    token = body.get("token") if isinstance(body, dict) else None
    if not token or not isinstance(token, str):
        return error_response(400, "missing_token", "Missing test token", origin=origin)

    secret = get_preview_token_secret()
    if not secret:
        return error_response(500, "internal_error", "Preview exchange not configured", origin=origin)

    if not verify_signature(token, secret):
        logger.warning("Preview token signature verification failed")
        return error_response(401, "invalid_token", "Invalid or expired test token", origin=origin)

    claims = validate_preview_token(token)
    if isinstance(claims, TokenRejection):
        if claims.reason == REJECT_WRONG_MODE:
            return error_response(400, "wrong_mode", "Invalid test token mode", origin=origin)
        if claims.reason == REJECT_EXPIRED_TOKEN:
            return error_response(401, "invalid_token", "Invalid or expired test token", origin=origin)
        return error_response(401, "invalid_token", claims.message, origin=origin)

    if not claims.campaign_id:
        return error_response(400, "missing_campaign", "Test token missing campaign_id", origin=origin)

    try:
        campaign = dynamo.get_campaign(claims.campaign_id)
    except StoreUnavailableError as e:
        return e.to_response(origin=origin)

    if not campaign or campaign.get("archived"):
        logger.warning(f"Preview requested for unavailable campaign {claims.campaign_id}")
        return error_response(404, "campaign_not_found", "Campaign not found or not accessible", origin=origin)

    session_id = str(uuid.uuid4())
    try:
        dynamo.put_flow_session(
            session_id,
            {
                "campaign_id": claims.campaign_id,
                "brand_id": campaign.get("brand_id"),
                "status": "active",
                "is_test": True,
                "created_by": claims.created_by,
                "template_id": claims.template_id,
            },
        )
    except ClientError as e:
        logger.error(f"Failed to create test session: {e}")
        return error_response(
            500,
            "internal_error",
            "Failed to create test session",
            details={"code": e.response.get("Error", {}).get("Code", "")},
            origin=origin,
        )

    logger.info(
        "Test session created",
        extra={"session_id": session_id, "campaign_id": claims.campaign_id},
    )

    return success_response(
        {
            "success": True,
            "session_id": session_id,
            "campaign_id": claims.campaign_id,
            "brand_id": campaign.get("brand_id"),
            "is_test": True,
        },
        origin=origin,
    )
