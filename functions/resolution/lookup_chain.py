"""
Code lookup chain: QR code -> batch -> campaign.

Each step reads one table and feeds the next. A miss at any step ends the
chain with a ChainFailure naming the stage; later steps are never attempted.
Misses are values, not exceptions. Store faults (StoreUnavailableError,
MalformedRecordError) propagate to the pipeline boundary.

The on_code_found hook runs as soon as step 1 succeeds, before the batch
and campaign are read, so scan accounting counts lookups rather than
complete resolutions. A found code is counted even when its item is
malformed.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Union

from shared import dynamo
from shared.constants import (
    ERROR_CAMPAIGN_NOT_FOUND,
    ERROR_CODE_NOT_FOUND,
    ERROR_GROUPING_NOT_FOUND,
    MAX_CODE_LENGTH,
)
from shared.errors import MalformedRecordError
from shared.logging_utils import mask_code

logger = logging.getLogger(__name__)


class ChainStage(Enum):
    CODE = "code"
    GROUPING = "grouping"
    CAMPAIGN = "campaign"


@dataclass(frozen=True)
class ScanCode:
    """Request-scoped copy of a QR code item."""

    code: str
    id: str
    batch_id: str
    scans: int = 0


@dataclass(frozen=True)
class Grouping:
    """Request-scoped copy of a batch item."""

    id: str
    campaign_id: str


@dataclass(frozen=True)
class Campaign:
    """Request-scoped copy of a campaign item."""

    id: str
    name: str = ""
    access_token: Optional[str] = None
    fallback_url: Optional[str] = None
    archived: bool = False


@dataclass(frozen=True)
class ChainSuccess:
    campaign: Campaign
    code: str


@dataclass(frozen=True)
class ChainFailure:
    reason: str
    stage: ChainStage
    code: str


ChainResult = Union[ChainSuccess, ChainFailure]


def _require(item: dict, field: str, table: str):
    value = item.get(field)
    if value is None or value == "":
        raise MalformedRecordError(table, field)
    return value


def _to_scan_code(code: str, item: dict) -> ScanCode:
    scans = item.get("scans")
    return ScanCode(
        code=code,
        id=str(item.get("id") or code),
        batch_id=str(item.get("batch_id") or ""),
        scans=int(scans) if isinstance(scans, (int, Decimal)) else 0,
    )


def _to_grouping(item: dict) -> Grouping:
    return Grouping(
        id=str(item["pk"]),
        campaign_id=str(_require(item, "campaign_id", dynamo.BATCHES_TABLE)),
    )


def _to_campaign(item: dict) -> Campaign:
    return Campaign(
        id=str(item.get("pk") or ""),
        name=item.get("name", ""),
        access_token=item.get("customer_access_token") or None,
        fallback_url=item.get("final_redirect_url") or None,
        archived=bool(item.get("archived", False)),
    )


def run_lookup_chain(
    code: str,
    on_code_found: Optional[Callable[[ScanCode], object]] = None,
) -> ChainResult:
    """
    Resolve a scanned code to its campaign.

    Args:
        code: Scanned unique code (non-empty)
        on_code_found: Called once with the ScanCode right after step 1
            succeeds. Must not block; its result is ignored.

    Returns:
        ChainSuccess or ChainFailure
    """
    if len(code) > MAX_CODE_LENGTH:
        logger.warning(f"Rejecting over-long scan code ({len(code)} chars)")
        return ChainFailure(ERROR_CODE_NOT_FOUND, ChainStage.CODE, code)

    # Step 1: code
    code_item = dynamo.get_qr_code(code)
    if not code_item:
        logger.info(f"QR code not found: {mask_code(code)}")
        return ChainFailure(ERROR_CODE_NOT_FOUND, ChainStage.CODE, code)

    scan_code = _to_scan_code(code, code_item)
    if on_code_found is not None:
        on_code_found(scan_code)

    _require(code_item, "batch_id", dynamo.QR_CODES_TABLE)

    # Step 2: batch
    batch_item = dynamo.get_batch(scan_code.batch_id)
    if not batch_item:
        logger.warning(
            f"Batch {scan_code.batch_id} not found for code {mask_code(code)}",
            extra={"batch_id": scan_code.batch_id},
        )
        return ChainFailure(ERROR_GROUPING_NOT_FOUND, ChainStage.GROUPING, code)

    grouping = _to_grouping(batch_item)

    # Step 3: campaign
    campaign_item = dynamo.get_campaign(grouping.campaign_id)
    if not campaign_item:
        logger.warning(
            f"Campaign {grouping.campaign_id} not found for batch {grouping.id}",
            extra={"batch_id": grouping.id, "campaign_id": grouping.campaign_id},
        )
        return ChainFailure(ERROR_CAMPAIGN_NOT_FOUND, ChainStage.CAMPAIGN, code)

    return ChainSuccess(campaign=_to_campaign(campaign_item), code=code)
