"""
Error types shared by the resolution pipeline and the API handlers.

Lookups return None for "not there"; these exceptions are for "could not
tell" and for collaborators that failed.
"""

from typing import Optional


class QRFlowError(Exception):
    """Base error carrying an API error code and HTTP status."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_response(self, origin: Optional[str] = None) -> dict:
        """Render as a JSON error response."""
        from .response_utils import error_response

        return error_response(
            self.status_code,
            self.code,
            self.message,
            details=self.details or None,
            origin=origin,
        )


class StoreUnavailableError(QRFlowError):
    """DynamoDB could not answer a lookup (distinct from a miss)."""

    def __init__(self, table: str, message: str = "Data store unavailable"):
        super().__init__("store_unavailable", message, status_code=503, details={"table": table})
        self.table = table


class MalformedRecordError(QRFlowError):
    """A stored item lacks a reference the lookup chain follows."""

    def __init__(self, table: str, field: str):
        super().__init__(
            "malformed_record",
            f"Item in {table} is missing '{field}'",
            details={"table": table, "field": field},
        )


class ExchangeError(QRFlowError):
    """The trusted preview-token exchange failed or answered nonsense."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(
            "exchange_failed",
            message,
            status_code=502,
            details={"upstream_status": upstream_status} if upstream_status else None,
        )
        self.upstream_status = upstream_status
