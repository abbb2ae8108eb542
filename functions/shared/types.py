"""
Shared Type Definitions for DynamoDB items.

TypedDict shapes of the items read and written by the resolution pipeline.
"""

from typing import TypedDict


class QRCodeItem(TypedDict, total=False):
    """QR code item from the qr-codes table."""

    pk: str  # unique_code
    id: str
    batch_id: str
    scans: int
    qr_url: str
    created_at: str


class BatchItem(TypedDict, total=False):
    """Batch (grouping) item from the batches table."""

    pk: str
    name: str
    campaign_id: str
    status: str


class CampaignItem(TypedDict, total=False):
    """Campaign item from the campaigns table."""

    pk: str
    name: str
    brand_id: str
    customer_access_token: str
    final_redirect_url: str
    archived: bool


class FlowSessionItem(TypedDict, total=False):
    """Flow session item written by the preview exchange."""

    pk: str
    campaign_id: str
    brand_id: str
    status: str
    is_test: bool
    created_by: str
    template_id: str
    created_at: str
