# Shared utilities package
from .dynamo import get_batch, get_campaign, get_qr_code, increment_scan_count
from .errors import ExchangeError, QRFlowError, StoreUnavailableError
from .response_utils import error_response, redirect_response, success_response

__all__ = [
    "get_qr_code",
    "get_batch",
    "get_campaign",
    "increment_scan_count",
    "error_response",
    "redirect_response",
    "success_response",
    "QRFlowError",
    "StoreUnavailableError",
    "ExchangeError",
]
