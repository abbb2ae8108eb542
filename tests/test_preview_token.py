"""
Tests for preview token validation and signing
(functions/resolution/preview_token.py).
"""

import base64
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from resolution.preview_token import (
    PreviewClaims,
    TokenRejection,
    decode_payload,
    sign_preview_token,
    validate_preview_token,
    verify_signature,
)

SECRET = "test-preview-secret"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _b64(data) -> str:
    raw = data if isinstance(data, bytes) else json.dumps(data).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def make_token(**overrides) -> str:
    payload = {
        "mode": "test",
        "campaign_id": "C9",
        "template_id": None,
        "created_by": "admin-1",
        "exp": int((NOW + timedelta(hours=1)).timestamp()),
    }
    payload.update(overrides)
    return sign_preview_token(payload, SECRET)


@freeze_time(NOW)
class TestValidatePreviewToken:
    """Local structure/expiry/mode checks."""

    def test_valid_token_returns_claims(self):
        """A well-formed, unexpired test token is accepted."""
        result = validate_preview_token(make_token())

        assert isinstance(result, PreviewClaims)
        assert result.mode == "test"
        assert result.campaign_id == "C9"
        assert result.template_id is None
        assert result.created_by == "admin-1"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        """Missing token is rejected before anything else."""
        with patch("resolution.preview_token.decode_payload") as decode:
            result = validate_preview_token(token)

        assert result == TokenRejection("missing-token", "Missing test token")
        decode.assert_not_called()

    @pytest.mark.parametrize("token", ["a.b", "abc", "a.b.c.d", "...."])
    def test_wrong_segment_count_is_malformed_without_decoding(self, token):
        """Segment count is checked before any payload decode."""
        with patch("resolution.preview_token.decode_payload") as decode:
            result = validate_preview_token(token)

        assert result.reason == "malformed-token"
        decode.assert_not_called()

    def test_unreadable_payload_is_malformed(self):
        """A payload that is not base64 JSON is malformed."""
        result = validate_preview_token(f"{_b64({'alg': 'HS256'})}.!!!not-json!!!.sig")

        assert result.reason == "malformed-token"

    def test_non_object_payload_is_malformed(self):
        """A JSON payload must be an object."""
        result = validate_preview_token(f"h.{_b64([1, 2, 3])}.sig")

        assert result.reason == "malformed-token"

    def test_missing_expiry_is_malformed(self):
        """A payload without a numeric exp is malformed."""
        result = validate_preview_token(f"h.{_b64({'mode': 'test'})}.sig")

        assert result.reason == "malformed-token"

    @pytest.mark.parametrize("exp", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_expiry_is_malformed(self, exp):
        """JSON NaN/Infinity are not usable expiry timestamps."""
        payload = _b64(f'{{"mode": "test", "campaign_id": "C9", "exp": {exp}}}'.encode())

        result = validate_preview_token(f"{_b64({'alg': 'HS256'})}.{payload}.sig")

        assert result == TokenRejection("malformed-token", "Token payload has no expiry")

    def test_expired_token(self):
        """exp in the past is rejected."""
        result = validate_preview_token(make_token(exp=int((NOW - timedelta(minutes=1)).timestamp())))

        assert result.reason == "expired-token"

    def test_expiry_equal_to_now_is_expired(self):
        """Expiry must be strictly in the future."""
        result = validate_preview_token(make_token(exp=int(NOW.timestamp())))

        assert result.reason == "expired-token"

    def test_wrong_mode(self):
        """Only the test mode is accepted."""
        result = validate_preview_token(make_token(mode="live"))

        assert result.reason == "wrong-mode"

    def test_expiry_checked_before_mode(self):
        """An expired token with the wrong mode reports expiry."""
        result = validate_preview_token(
            make_token(mode="live", exp=int((NOW - timedelta(hours=1)).timestamp()))
        )

        assert result.reason == "expired-token"

    def test_signature_is_not_checked_locally(self):
        """Structural validation does not need the secret."""
        token = make_token()
        header, payload, _ = token.split(".")

        result = validate_preview_token(f"{header}.{payload}.forged")

        assert isinstance(result, PreviewClaims)


class TestSignatures:
    """Tests for sign_preview_token / verify_signature."""

    def test_round_trip(self):
        """A signed token verifies with the same secret."""
        assert verify_signature(make_token(), SECRET) is True

    def test_wrong_secret(self):
        """A different secret fails verification."""
        assert verify_signature(make_token(), "other-secret") is False

    def test_tampered_payload(self):
        """Changing the payload invalidates the signature."""
        header, _, signature = make_token().split(".")
        forged = _b64({"mode": "test", "campaign_id": "C1", "exp": 9999999999})

        assert verify_signature(f"{header}.{forged}.{signature}", SECRET) is False

    def test_rejects_non_hs256_header(self):
        """Only HS256 headers are accepted."""
        _, payload, signature = make_token().split(".")
        header = _b64({"alg": "none", "typ": "JWT"})

        assert verify_signature(f"{header}.{payload}.{signature}", SECRET) is False

    def test_empty_secret_never_verifies(self):
        """A missing secret fails closed."""
        assert verify_signature(make_token(), "") is False

    def test_payload_decodes(self):
        """The payload segment is plain base64url JSON."""
        payload = decode_payload(make_token().split(".")[1])

        assert payload["mode"] == "test"
        assert payload["campaign_id"] == "C9"
