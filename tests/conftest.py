"""
Shared pytest fixtures for QRFlow tests.
"""

import os
import sys

import boto3
import pytest
from moto import mock_aws

# Add functions directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))


def pytest_configure(config):
    """Set AWS credentials before test collection.

    Handler modules configure logging and may create boto3 clients at
    import, so a region must exist before collection starts.
    """
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_REGION", "us-east-1")

    # Fresh HTTP client per call so tests can inject httpx.MockTransport
    os.environ["USE_CONNECTION_POOLING"] = "false"


@pytest.fixture(autouse=True)
def aws_credentials():
    """Set fake AWS credentials for all tests."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["AWS_REGION"] = "us-east-1"


@pytest.fixture(autouse=True)
def reset_aws_clients():
    """Reset shared AWS client singletons between tests."""
    from shared.aws_clients import reset_clients

    reset_clients()
    yield
    reset_clients()


@pytest.fixture(autouse=True)
def reset_preview_secret_cache():
    """Reset the preview token secret cache between tests."""
    from shared.secrets import reset_secret_cache

    reset_secret_cache()
    yield
    reset_secret_cache()


def create_dynamodb_tables(dynamodb):
    """Create the QR code, batch, campaign and flow session tables."""
    for table_name in (
        "qrflow-qr-codes",
        "qrflow-batches",
        "qrflow-campaigns",
        "qrflow-flow-sessions",
    ):
        dynamodb.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "pk", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )


@pytest.fixture
def mock_dynamodb():
    """Provide mocked DynamoDB with tables."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        create_dynamodb_tables(dynamodb)
        yield dynamodb


@pytest.fixture
def seeded_tables(mock_dynamodb):
    """
    Tables seeded with a complete chain and each broken variant.

    ABC123   -> B1 -> C1           (resolves, no fallback)
    TOKEN1   -> B2 -> C2           (resolves, with access token + fallback)
    ARCH1    -> B3 -> C3           (archived campaign with fallback)
    ARCH2    -> B4 -> C4           (archived campaign, no fallback)
    ORPHAN1  -> B-missing          (batch missing)
    NOCAMP1  -> B5 -> C-missing    (campaign missing)
    """
    codes = mock_dynamodb.Table("qrflow-qr-codes")
    batches = mock_dynamodb.Table("qrflow-batches")
    campaigns = mock_dynamodb.Table("qrflow-campaigns")

    for code, batch_id in (
        ("ABC123", "B1"),
        ("TOKEN1", "B2"),
        ("ARCH1", "B3"),
        ("ARCH2", "B4"),
        ("ORPHAN1", "B-missing"),
        ("NOCAMP1", "B5"),
    ):
        codes.put_item(
            Item={
                "pk": code,
                "id": f"qr-{code.lower()}",
                "batch_id": batch_id,
                "scans": 0,
                "qr_url": f"https://app.qrflow.dev/q/{code}",
            }
        )

    for batch_id, campaign_id in (
        ("B1", "C1"),
        ("B2", "C2"),
        ("B3", "C3"),
        ("B4", "C4"),
        ("B5", "C-missing"),
    ):
        batches.put_item(Item={"pk": batch_id, "name": f"Batch {batch_id}", "campaign_id": campaign_id})

    campaigns.put_item(Item={"pk": "C1", "name": "Spring Launch", "brand_id": "brand-1"})
    campaigns.put_item(
        Item={
            "pk": "C2",
            "name": "Members Only",
            "brand_id": "brand-1",
            "customer_access_token": "ct-secret",
            "final_redirect_url": "https://brand.example.com/thanks",
        }
    )
    campaigns.put_item(
        Item={
            "pk": "C3",
            "name": "Old Promo",
            "brand_id": "brand-2",
            "archived": True,
            "final_redirect_url": "https://brand.example.com/ended",
        }
    )
    campaigns.put_item(Item={"pk": "C4", "name": "Retired", "brand_id": "brand-2", "archived": True})
    campaigns.put_item(Item={"pk": "C9", "name": "Preview Me", "brand_id": "brand-9"})

    return mock_dynamodb


def get_scans(dynamodb, code: str) -> int:
    """Read the current scan counter for a code."""
    item = dynamodb.Table("qrflow-qr-codes").get_item(Key={"pk": code}).get("Item")
    return int(item.get("scans", 0))
