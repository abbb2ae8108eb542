"""
Lambda proxy responses: JSON bodies for the exchange/context endpoints and
302s for the redirect endpoints.
"""

import json
import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .request_utils import ROUTE_FRAGMENT_HEADER, get_header

ALLOWED_ORIGINS: List[str] = ["https://app.qrflow.dev", "https://admin.qrflow.dev"]
if os.environ.get("ALLOW_DEV_CORS") == "true":
    ALLOWED_ORIGINS += ["http://localhost:5173", "http://localhost:3000"]

# Redirect targets can carry ct= access tokens
REDIRECT_HEADERS = {
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
}


def get_origin(event: dict) -> Optional[str]:
    return get_header(event, "Origin")


def get_cors_headers(origin: Optional[str]) -> Dict[str, str]:
    """CORS headers for allow-listed origins, nothing otherwise."""
    if not origin or origin not in ALLOWED_ORIGINS:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": f"Content-Type, Authorization, {ROUTE_FRAGMENT_HEADER}",
        "Access-Control-Allow-Credentials": "true",
    }


def decimal_default(obj: Any) -> Any:
    """json.dumps hook for the Decimals boto3 returns for DynamoDB numbers."""
    if not isinstance(obj, Decimal):
        raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
    return int(obj) if obj == obj.to_integral_value() else float(obj)


def _json(status_code: int, payload: Any, headers: Optional[Dict[str, str]], origin: Optional[str]) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", **get_cors_headers(origin), **(headers or {})},
        "body": json.dumps(payload, default=decimal_default),
    }


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
    details: Optional[Dict[str, Any]] = None,
    origin: Optional[str] = None,
) -> dict:
    """
    JSON error body: {"error": {"code", "message", "details"?}}.

    Args:
        status_code: HTTP status code
        code: Machine-readable snake_case code (e.g. campaign_not_found)
        message: Human-readable message
        headers: Extra response headers
        details: Optional structured details
        origin: Request Origin for CORS
    """
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return _json(status_code, {"error": error}, headers, origin)


def success_response(
    data: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    origin: Optional[str] = None,
) -> dict:
    return _json(status_code, data, headers, origin)


def redirect_response(
    location: str,
    status_code: int = 302,
    headers: Optional[Dict[str, str]] = None,
) -> dict:
    """Redirect with an empty body and the no-store/security header set."""
    return {
        "statusCode": status_code,
        "headers": {"Location": location, **REDIRECT_HEADERS, **(headers or {})},
        "body": "",
    }
