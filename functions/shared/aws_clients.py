"""
Lazily created boto3 clients shared by all QRFlow Lambdas.

boto3 is imported on first use so handlers that never touch AWS (health,
flow entry context) keep a small cold start.
"""

import threading

_cache: dict = {}
_lock = threading.Lock()


def _get(kind: str, service: str):
    key = (kind, service)
    # Creation on boto3's default session must be serialized across threads
    with _lock:
        if key not in _cache:
            import boto3

            factory = boto3.resource if kind == "resource" else boto3.client
            _cache[key] = factory(service)
        return _cache[key]


def get_dynamodb():
    """DynamoDB resource (Table API)."""
    return _get("resource", "dynamodb")


def get_dynamodb_client():
    """Low-level DynamoDB client. Unlike the resource, safe to share across threads."""
    return _get("client", "dynamodb")


def get_secretsmanager():
    return _get("client", "secretsmanager")


def get_cloudwatch():
    return _get("client", "cloudwatch")


def reset_clients():
    """Forget cached clients so the next call binds to the current (e.g. moto) session."""
    _cache.clear()
