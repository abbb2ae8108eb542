"""
Tests for the trusted preview exchange endpoint (functions/api/preview_exchange.py).
"""

import json
import time
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError

from resolution.preview_token import sign_preview_token

SECRET = "exchange-test-secret"


@pytest.fixture
def preview_secret(seeded_tables, monkeypatch):
    """Store the signing secret in mocked Secrets Manager."""
    client = boto3.client("secretsmanager", region_name="us-east-1")
    arn = client.create_secret(
        Name="qrflow/preview-token-secret",
        SecretString=json.dumps({"secret": SECRET}),
    )["ARN"]
    monkeypatch.setenv("PREVIEW_TOKEN_SECRET_ARN", arn)
    return seeded_tables


def _token(secret=SECRET, **overrides) -> str:
    payload = {
        "mode": "test",
        "campaign_id": "C9",
        "template_id": None,
        "created_by": "admin-1",
        "exp": int(time.time()) + 1800,
    }
    payload.update(overrides)
    return sign_preview_token(payload, secret)


def _event(body) -> dict:
    return {
        "httpMethod": "POST",
        "headers": {"origin": "https://app.qrflow.dev"},
        "body": body if isinstance(body, str) or body is None else json.dumps(body),
        "requestContext": {"requestId": "req-1"},
    }


def _error_code(result) -> str:
    return json.loads(result["body"])["error"]["code"]


class TestPreviewExchangeHandler:
    """Tests for POST /preview/exchange."""

    def test_creates_test_session(self, preview_secret):
        """A valid token provisions an active test session."""
        from api.preview_exchange import handler

        result = handler(_event({"token": _token()}), {})

        assert result["statusCode"] == 200
        body = json.loads(result["body"])
        assert body["success"] is True
        assert body["campaign_id"] == "C9"
        assert body["brand_id"] == "brand-9"
        assert body["is_test"] is True

        item = preview_secret.Table("qrflow-flow-sessions").get_item(
            Key={"pk": body["session_id"]}
        )["Item"]
        assert item["campaign_id"] == "C9"
        assert item["status"] == "active"
        assert item["is_test"] is True
        assert item["created_by"] == "admin-1"
        assert "template_id" not in item

    def test_each_exchange_gets_a_new_session(self, preview_secret):
        """Exchanging the same token twice yields two sessions."""
        from api.preview_exchange import handler

        token = _token()
        first = json.loads(handler(_event({"token": token}), {})["body"])
        second = json.loads(handler(_event({"token": token}), {})["body"])

        assert first["session_id"] != second["session_id"]

    def test_cors_headers_for_app_origin(self, preview_secret):
        """Responses to the app origin carry CORS headers."""
        from api.preview_exchange import handler

        result = handler(_event({"token": _token()}), {})

        assert result["headers"]["Access-Control-Allow-Origin"] == "https://app.qrflow.dev"

    def test_invalid_json(self, preview_secret):
        from api.preview_exchange import handler

        result = handler(_event("{not json"), {})

        assert result["statusCode"] == 400
        assert _error_code(result) == "invalid_json"

    @pytest.mark.parametrize("body", [{}, {"token": ""}, {"token": 42}, ["token"]])
    def test_missing_token(self, preview_secret, body):
        from api.preview_exchange import handler

        result = handler(_event(body), {})

        assert result["statusCode"] == 400
        assert _error_code(result) == "missing_token"

    def test_bad_signature(self, preview_secret):
        """Tokens signed with another secret are refused."""
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(secret="wrong")}), {})

        assert result["statusCode"] == 401
        assert _error_code(result) == "invalid_token"

    def test_expired_token(self, preview_secret):
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(exp=int(time.time()) - 10)}), {})

        assert result["statusCode"] == 401
        assert _error_code(result) == "invalid_token"

    @pytest.mark.parametrize("exp", [float("nan"), float("inf")])
    def test_non_finite_expiry(self, preview_secret, exp):
        """A correctly signed token with a NaN/Infinity expiry is refused."""
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(exp=exp)}), {})

        assert result["statusCode"] == 401
        assert _error_code(result) == "invalid_token"

    def test_wrong_mode(self, preview_secret):
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(mode="live")}), {})

        assert result["statusCode"] == 400
        assert _error_code(result) == "wrong_mode"

    def test_missing_campaign_id(self, preview_secret):
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(campaign_id=None, template_id="T1")}), {})

        assert result["statusCode"] == 400
        assert _error_code(result) == "missing_campaign"

    @pytest.mark.parametrize("campaign_id", ["C-unknown", "C3"])
    def test_unavailable_campaign(self, preview_secret, campaign_id):
        """Unknown and archived campaigns cannot be previewed."""
        from api.preview_exchange import handler

        result = handler(_event({"token": _token(campaign_id=campaign_id)}), {})

        assert result["statusCode"] == 404
        assert _error_code(result) == "campaign_not_found"

    def test_secret_not_configured(self, seeded_tables, monkeypatch):
        """Without a secret the exchange cannot verify anything."""
        from api.preview_exchange import handler

        monkeypatch.delenv("PREVIEW_TOKEN_SECRET_ARN", raising=False)

        result = handler(_event({"token": _token()}), {})

        assert result["statusCode"] == 500

    def test_store_unavailable(self, preview_secret):
        """A failing campaign read is a 503."""
        from api.preview_exchange import handler

        error = ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "x"}}, "GetItem")
        with patch("shared.dynamo.get_dynamodb") as get_dynamodb:
            get_dynamodb.return_value.Table.return_value.get_item.side_effect = error
            result = handler(_event({"token": _token()}), {})

        assert result["statusCode"] == 503
        assert _error_code(result) == "store_unavailable"

    def test_session_write_failure(self, preview_secret):
        """A failed session insert is a 500 with the DynamoDB error code."""
        from api.preview_exchange import handler

        error = ClientError({"Error": {"Code": "ValidationException", "Message": "x"}}, "PutItem")
        with patch("shared.dynamo.put_flow_session", side_effect=error):
            result = handler(_event({"token": _token()}), {})

        assert result["statusCode"] == 500
        assert json.loads(result["body"])["error"]["details"] == {"code": "ValidationException"}
