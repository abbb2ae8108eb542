"""
Shared constants for QRFlow.
"""

# Session-entry parameters recognized by the flow runtime
PARAM_CAMPAIGN_ID = "cid"
PARAM_CAMPAIGN_ID_ALIAS = "campaign_id"
PARAM_ACCESS_TOKEN = "ct"
PARAM_QR_CODE = "qr"
PARAM_SESSION = "session"
PARAM_TEST = "test"

FLOW_RUN_PATH = "/flow/run"
NOT_FOUND_PATH = "/not-found"

# Not-found error codes surfaced to the not-found page
ERROR_MISSING_CODE = "missing-code"
ERROR_CODE_NOT_FOUND = "code-not-found"
ERROR_GROUPING_NOT_FOUND = "grouping-not-found"
ERROR_CAMPAIGN_NOT_FOUND = "campaign-not-found"
ERROR_NO_CAMPAIGN_DATA = "no-campaign-data"
ERROR_PROCESSING = "processing-error"

# Preview token rejection reasons
REJECT_MISSING_TOKEN = "missing-token"
REJECT_MALFORMED_TOKEN = "malformed-token"
REJECT_EXPIRED_TOKEN = "expired-token"
REJECT_WRONG_MODE = "wrong-mode"
REJECT_EXCHANGE_FAILED = "exchange-failed"

PREVIEW_MODE = "test"

# Scan codes are opaque but bounded
MAX_CODE_LENGTH = 128

# DynamoDB throttling error codes that should trigger retry
THROTTLING_ERRORS = (
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
    "ThrottlingException",
    "InternalServerError",
)

# Timeouts
EXCHANGE_TIMEOUT = 15.0
