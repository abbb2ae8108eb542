"""
Preview token signing secret, loaded from Secrets Manager with a TTL cache.
"""

import json
import logging
import os
import time

from botocore.exceptions import ClientError

from .aws_clients import get_secretsmanager

logger = logging.getLogger(__name__)

# Cached secret with TTL
_preview_secret_cache = None
_preview_secret_cache_time = 0.0
PREVIEW_SECRET_CACHE_TTL = 300  # 5 minutes - allows secret rotation to take effect


def get_preview_token_secret() -> str:
    """Retrieve the preview token secret (cached with TTL). Empty string if unavailable."""
    global _preview_secret_cache, _preview_secret_cache_time

    if _preview_secret_cache and (time.time() - _preview_secret_cache_time) < PREVIEW_SECRET_CACHE_TTL:
        return _preview_secret_cache

    # Read at runtime to allow tests to set this env var
    secret_arn = os.environ.get("PREVIEW_TOKEN_SECRET_ARN")
    if not secret_arn:
        logger.error("PREVIEW_TOKEN_SECRET_ARN not configured")
        return ""

    try:
        response = get_secretsmanager().get_secret_value(SecretId=secret_arn)
        secret_string = response["SecretString"]

        try:
            secret_data = json.loads(secret_string)
            if isinstance(secret_data, dict):
                _preview_secret_cache = secret_data.get("secret", secret_string)
            else:
                _preview_secret_cache = secret_string
        except json.JSONDecodeError:
            _preview_secret_cache = secret_string

        _preview_secret_cache_time = time.time()
        return _preview_secret_cache
    except ClientError as e:
        logger.error(f"Failed to retrieve preview token secret: {e}")
        return ""


def reset_secret_cache() -> None:
    """Drop the cached secret. Used in tests."""
    global _preview_secret_cache, _preview_secret_cache_time
    _preview_secret_cache = None
    _preview_secret_cache_time = 0.0
