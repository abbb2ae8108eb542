#!/usr/bin/env python3
"""
Preview Token Mint Script

Creates a signed preview token for a campaign (and optionally a template)
and prints the /flow/test link that starts a test session.

The signing secret is read from Secrets Manager (PREVIEW_TOKEN_SECRET_ARN)
unless --secret is given.

Usage:
    python scripts/mint_preview_token.py --campaign C1 --created-by admin@example.com
    python scripts/mint_preview_token.py --campaign C1 --ttl-minutes 10 --json
"""

import argparse
import json
import os
import sys
import time
from pathlib import Path
from urllib.parse import urlencode

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "functions"))

from resolution.preview_token import sign_preview_token  # noqa: E402
from shared.constants import PREVIEW_MODE  # noqa: E402
from shared.secrets import get_preview_token_secret  # noqa: E402

DEFAULT_TTL_MINUTES = int(os.environ.get("PREVIEW_TOKEN_TTL_MINUTES", "30"))
APP_BASE_URL = os.environ.get("APP_BASE_URL", "https://app.qrflow.dev").rstrip("/")


def build_payload(
    campaign_id: str | None,
    template_id: str | None,
    created_by: str,
    ttl_minutes: int,
    now: float | None = None,
) -> dict:
    """Build the preview token payload."""
    issued = int(now if now is not None else time.time())
    return {
        "mode": PREVIEW_MODE,
        "campaign_id": campaign_id,
        "template_id": template_id,
        "created_by": created_by,
        "exp": issued + ttl_minutes * 60,
    }


def preview_url(token: str) -> str:
    return f"{APP_BASE_URL}/flow/test?{urlencode({'token': token})}"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a preview (test) flow link")
    parser.add_argument("--campaign", dest="campaign_id", help="Campaign id to preview")
    parser.add_argument("--template", dest="template_id", help="Template id to preview")
    parser.add_argument("--created-by", required=True, help="Issuer identity recorded on the session")
    parser.add_argument("--ttl-minutes", type=int, default=DEFAULT_TTL_MINUTES, help="Token lifetime")
    parser.add_argument("--secret", help="Signing secret (defaults to Secrets Manager)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of the bare URL")
    args = parser.parse_args(argv)

    if not args.campaign_id and not args.template_id:
        parser.error("Either --campaign or --template is required")
    if args.ttl_minutes <= 0:
        parser.error("--ttl-minutes must be positive")

    secret = args.secret or get_preview_token_secret()
    if not secret:
        print("No signing secret available (set PREVIEW_TOKEN_SECRET_ARN or pass --secret)", file=sys.stderr)
        return 1

    payload = build_payload(args.campaign_id, args.template_id, args.created_by, args.ttl_minutes)
    token = sign_preview_token(payload, secret)
    url = preview_url(token)

    if args.json:
        print(json.dumps({"url": url, "token": token, "expires_in": args.ttl_minutes * 60}, indent=2))
    else:
        print(url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
