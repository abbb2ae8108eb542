"""
DynamoDB helpers for the QR code, batch, campaign and flow session tables.

Lookups return the item or None when it does not exist. Anything other
than a clean miss (non-throttling ClientError, exhausted throttling
retries) raises StoreUnavailableError so callers can tell "not found"
apart from "could not ask".
"""

import logging
import os
import random
import time
from datetime import datetime, timezone
from typing import Optional

from botocore.exceptions import ClientError

from .aws_clients import get_dynamodb, get_dynamodb_client
from .constants import THROTTLING_ERRORS
from .errors import StoreUnavailableError
from .types import BatchItem, CampaignItem, FlowSessionItem, QRCodeItem

logger = logging.getLogger(__name__)

QR_CODES_TABLE = os.environ.get("QR_CODES_TABLE", "qrflow-qr-codes")
BATCHES_TABLE = os.environ.get("BATCHES_TABLE", "qrflow-batches")
CAMPAIGNS_TABLE = os.environ.get("CAMPAIGNS_TABLE", "qrflow-campaigns")
FLOW_SESSIONS_TABLE = os.environ.get("FLOW_SESSIONS_TABLE", "qrflow-flow-sessions")


def _get_item(table_name: str, pk: str, max_retries: int = 3) -> Optional[dict]:
    """
    Get a single item by partition key with retry for throttling.

    Args:
        table_name: DynamoDB table name
        pk: Partition key value
        max_retries: Maximum number of attempts for throttling errors

    Returns:
        Item dict or None if not found

    Raises:
        StoreUnavailableError: on non-throttling errors or exhausted retries
    """
    table = get_dynamodb().Table(table_name)

    for attempt in range(max_retries):
        try:
            response = table.get_item(Key={"pk": pk})
            return response.get("Item")
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code in THROTTLING_ERRORS and attempt < max_retries - 1:
                # Exponential backoff with jitter to prevent thundering herd
                base_delay = min(0.1 * (2 ** attempt), 2.0)
                jitter = random.uniform(0, base_delay * 0.5)
                delay = base_delay + jitter
                logger.warning(
                    f"DynamoDB throttled reading {table_name}, "
                    f"retry {attempt + 1}/{max_retries} in {delay:.2f}s"
                )
                time.sleep(delay)
                continue
            logger.error(f"Error reading {table_name}: {e}")
            raise StoreUnavailableError(table_name, f"Failed to read {table_name}: {error_code}") from e

    # Unreachable with max_retries >= 1, kept for max_retries == 0
    raise StoreUnavailableError(table_name, f"Max retries exceeded for {table_name}")


def get_qr_code(unique_code: str) -> Optional[QRCodeItem]:
    """Look up a QR code by its unique code."""
    return _get_item(QR_CODES_TABLE, unique_code)


def get_batch(batch_id: str) -> Optional[BatchItem]:
    """Look up a batch by id."""
    return _get_item(BATCHES_TABLE, batch_id)


def get_campaign(campaign_id: str) -> Optional[CampaignItem]:
    """Look up a campaign by id."""
    return _get_item(CAMPAIGNS_TABLE, campaign_id)


def increment_scan_count(unique_code: str) -> int:
    """
    Atomically add one to a QR code's scan counter.

    The increment is applied by DynamoDB (ADD), never as a read-modify-write,
    so concurrent scans of the same code are all counted.
    Called from scan-accounting worker threads, so it uses the low-level
    client rather than the Table resource.

    Args:
        unique_code: QR code partition key

    Returns:
        The counter value after the increment
    """
    response = get_dynamodb_client().update_item(
        TableName=QR_CODES_TABLE,
        Key={"pk": {"S": unique_code}},
        UpdateExpression="ADD scans :one SET last_scanned_at = :now",
        ConditionExpression="attribute_exists(pk)",
        ExpressionAttributeValues={
            ":one": {"N": "1"},
            ":now": {"S": datetime.now(timezone.utc).isoformat()},
        },
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["scans"]["N"])


def put_flow_session(session_id: str, data: dict) -> FlowSessionItem:
    """
    Store a new flow session.

    Args:
        session_id: Session id (partition key)
        data: Session attributes

    Returns:
        The stored item
    """
    table = get_dynamodb().Table(FLOW_SESSIONS_TABLE)

    item = {
        "pk": session_id,
        "created_at": datetime.now(timezone.utc).isoformat(),
        **data,
    }

    # Remove None values and empty strings (DynamoDB rejects empty strings in keys)
    item = {k: v for k, v in item.items() if v is not None and v != ""}

    table.put_item(
        Item=item,
        ConditionExpression="attribute_not_exists(pk)",
    )
    return item
