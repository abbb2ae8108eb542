"""
Health Check Endpoint - GET /health

Liveness check for the QRFlow API. Touches no data store.
"""

import time
from datetime import datetime, timezone

from shared.logging_utils import SERVICE_NAME, configure_structured_logging, log_api_request, set_request_id
from shared.response_utils import success_response

logger = configure_structured_logging()

VERSION = "1.0.0"


def handler(event, context):
    start_time = time.time()
    set_request_id(event)

    status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    response = success_response(status, headers={"Cache-Control": "no-cache"})

    log_api_request(logger, "GET", "/health", 200, (time.time() - start_time) * 1000)
    return response
