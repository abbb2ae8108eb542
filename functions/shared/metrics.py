"""
CloudWatch custom metrics.

Metrics are observational: a failed put is logged and dropped, never
raised into the redirect path.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, Optional

from .aws_clients import get_cloudwatch

logger = logging.getLogger(__name__)

NAMESPACE = os.environ.get("CLOUDWATCH_NAMESPACE", "QRFlow")


def _datum(metric_name: str, value: float, unit: str, dimensions: Optional[Dict[str, str]]) -> dict:
    datum = {
        "MetricName": metric_name,
        "Value": value,
        "Unit": unit,
        "Timestamp": datetime.now(timezone.utc),
    }
    if dimensions:
        datum["Dimensions"] = [{"Name": name, "Value": val} for name, val in dimensions.items()]
    return datum


def emit_metric(
    metric_name: str,
    value: float = 1.0,
    unit: str = "Count",
    dimensions: Optional[Dict[str, str]] = None,
) -> None:
    """
    Put a single data point in the QRFlow namespace.

    Examples:
        emit_metric("ScanAccountingFailure")
        emit_metric("ScanResolution", dimensions={"Outcome": "fallback"})
    """
    try:
        get_cloudwatch().put_metric_data(
            Namespace=NAMESPACE,
            MetricData=[_datum(metric_name, value, unit, dimensions)],
        )
    except Exception as e:
        logger.warning(f"Failed to emit metric {metric_name}: {e}")
        return

    logger.debug(f"Metric {metric_name}={value} {unit}", extra={"dimensions": dimensions})


def emit_outcome_metric(metric_name: str, outcome: str) -> None:
    """Count one occurrence of an outcome (session, fallback, not_found, ready, rejected)."""
    emit_metric(metric_name, dimensions={"Outcome": outcome})
