"""
Structured JSON logging for the QRFlow Lambdas.

Every line is one JSON object so CloudWatch Logs Insights can filter on
request_id, outcome, error_code and friends. Handlers call
configure_structured_logging() at import and set_request_id() per event.
"""

import json
import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional

from .request_utils import get_header

SERVICE_NAME = "qrflow"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


class StructuredFormatter(logging.Formatter):
    """Render a record and its extra= fields as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "app": SERVICE_NAME,
            "request_id": request_id_var.get(),
            "function_name": os.environ.get("AWS_LAMBDA_FUNCTION_NAME", ""),
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_structured_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Route the root logger through StructuredFormatter.

    Safe to call from every handler module: existing handlers are replaced,
    not stacked. LOG_LEVEL overrides the default INFO level.
    """
    if level is None:
        level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    stream = logging.StreamHandler()
    stream.setFormatter(StructuredFormatter())
    root.handlers = [stream]

    return root


def set_request_id(event: dict) -> str:
    """
    Bind the request id for this invocation.

    API Gateway's requestContext.requestId wins, then an X-Request-Id
    header; otherwise a new UUID is generated.
    """
    request_id = (
        (event.get("requestContext") or {}).get("requestId")
        or get_header(event, "X-Request-Id")
        or str(uuid.uuid4())
    )
    request_id_var.set(request_id)
    return request_id


def mask_code(code: Optional[str], visible: int = 4) -> str:
    """Scan codes and tokens grant access; only a prefix is logged."""
    if not code:
        return ""
    return code if len(code) <= visible else f"{code[:visible]}***"


def log_api_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    latency_ms: float,
    outcome: Optional[str] = None,
) -> None:
    """One summary line per handled request."""
    logger.info(
        f"{method} {path} -> {status_code}",
        extra={
            "http_method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
            "outcome": outcome or "",
        },
    )


def log_external_call(
    logger: logging.Logger,
    service: str,
    operation: str,
    success: bool,
    latency_ms: float,
    error: Optional[str] = None,
) -> None:
    """Log a call to a collaborator; failures are warnings."""
    status = "success" if success else "failed"
    logger.log(
        logging.INFO if success else logging.WARNING,
        f"{service}.{operation} {status}",
        extra={
            "service": service,
            "operation": operation,
            "success": success,
            "latency_ms": round(latency_ms, 2),
            "error": error,
        },
    )
