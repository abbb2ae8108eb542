"""
Preview token format: HS256 JWT-shaped ``header.payload.signature``.

The gate only checks structure, expiry and mode locally; signature
verification belongs to the trusted exchange (see api.preview_exchange),
which shares verify_signature with the mint script's sign_preview_token.
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import time
from dataclasses import dataclass
from typing import Optional, Union

from shared.constants import (
    PREVIEW_MODE,
    REJECT_EXPIRED_TOKEN,
    REJECT_MALFORMED_TOKEN,
    REJECT_MISSING_TOKEN,
    REJECT_WRONG_MODE,
)

_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class PreviewClaims:
    mode: str
    exp: int
    created_by: Optional[str] = None
    campaign_id: Optional[str] = None
    template_id: Optional[str] = None


@dataclass(frozen=True)
class TokenRejection:
    reason: str
    message: str


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64url_decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def decode_payload(segment: str) -> Optional[dict]:
    """Decode a base64url JSON object segment, None if it isn't one."""
    try:
        data = json.loads(_b64url_decode(segment))
    except (binascii.Error, ValueError):
        return None
    return data if isinstance(data, dict) else None


def validate_preview_token(
    token: Optional[str],
    now: Optional[float] = None,
) -> Union[PreviewClaims, TokenRejection]:
    """
    Validate a preview token's shape, expiry and mode without verifying it.

    Checks run in order and stop at the first failure:
    missing -> segment count -> payload decode -> expiry -> mode.

    Args:
        token: Raw token string (may be None)
        now: Current epoch seconds (defaults to time.time())

    Returns:
        PreviewClaims when acceptable, otherwise a TokenRejection
    """
    if not token:
        return TokenRejection(REJECT_MISSING_TOKEN, "Missing test token")

    parts = token.split(".")
    if len(parts) != 3:
        return TokenRejection(REJECT_MALFORMED_TOKEN, "Invalid token format")

    payload = decode_payload(parts[1])
    if payload is None:
        return TokenRejection(REJECT_MALFORMED_TOKEN, "Token payload is not readable")

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not math.isfinite(exp):
        return TokenRejection(REJECT_MALFORMED_TOKEN, "Token payload has no expiry")

    current = time.time() if now is None else now
    if exp <= current:
        return TokenRejection(
            REJECT_EXPIRED_TOKEN,
            "Test link has expired. Please generate a new test link.",
        )

    if payload.get("mode") != PREVIEW_MODE:
        return TokenRejection(REJECT_WRONG_MODE, "Invalid test token")

    return PreviewClaims(
        mode=payload["mode"],
        exp=int(exp),
        created_by=payload.get("created_by"),
        campaign_id=payload.get("campaign_id") or None,
        template_id=payload.get("template_id") or None,
    )


def _signature(signing_input: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), signing_input.encode(), hashlib.sha256).digest()
    return _b64url_encode(digest)


def sign_preview_token(payload: dict, secret: str) -> str:
    """Create an HS256 token for the given payload."""
    header = _b64url_encode(json.dumps(_HEADER, separators=(",", ":")).encode())
    body = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode())
    signing_input = f"{header}.{body}"
    return f"{signing_input}.{_signature(signing_input, secret)}"


def verify_signature(token: str, secret: str) -> bool:
    """Check the token's HS256 signature (constant-time compare)."""
    if not secret:
        return False

    parts = token.split(".")
    if len(parts) != 3:
        return False

    header = decode_payload(parts[0])
    if not header or header.get("alg") != "HS256":
        return False

    expected = _signature(f"{parts[0]}.{parts[1]}", secret)
    return hmac.compare_digest(parts[2], expected)
