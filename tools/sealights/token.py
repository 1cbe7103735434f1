from __future__ import annotations

import base64
import json
from typing import Any, Dict, Optional

DEFAULT_BACKEND_URL = "https://dev-staging.dev.sealights.co"


def decode_token_payload(token: str) -> Optional[Dict[str, Any]]:
    """Decode the (unverified) payload segment of a JWT agent token."""
    parts = token.split(".")
    if len(parts) < 2:
        return None
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")).decode("utf-8"))
    except (ValueError, UnicodeError):
        return None
    return payload if isinstance(payload, dict) else None


def backend_url_from_token(token: Optional[str]) -> str:
    """Best-effort API URL from the token claims.

    Precedence: ``x-sl-server``, ``backendUrl``, then ``iss`` when it is a URL.
    Falls back to the default backend.
    """
    if not token:
        return DEFAULT_BACKEND_URL

    payload = decode_token_payload(token)
    if payload is None:
        print("⚠️  Could not extract backend URL from token, using default")
        return DEFAULT_BACKEND_URL

    if payload.get("x-sl-server"):
        return str(payload["x-sl-server"])
    if payload.get("backendUrl"):
        return str(payload["backendUrl"])
    iss = payload.get("iss")
    if isinstance(iss, str) and iss.startswith("http"):
        return iss
    return DEFAULT_BACKEND_URL


def resolve_backend_url(token: Optional[str], backend_url: Optional[str]) -> Optional[str]:
    """A token always wins over a configured URL; neither means not configured."""
    if token:
        return backend_url_from_token(token)
    return backend_url or None
