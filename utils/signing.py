# -------------------------------------------------------------------
#  utils/signing.py  - helpers for authenticated CoinDCX REST calls.
# -------------------------------------------------------------------
"""Request signing for the CoinDCX private API.

   1. Serialise the request body to compact JSON exactly once.
   2. HmacSHA256(secret_key, body_bytes) -> hex digest (lower-case).
   3. Send the *same* bytes with the signature in ``X-AUTH-SIGNATURE``.

Quantities travel as ``Decimal`` and are written as plain decimal text,
never in scientific notation."""
from __future__ import annotations
import hashlib, hmac, json, time, uuid
from decimal import Decimal
from typing import Any, Dict

__all__ = [
    "generate_signature",
    "serialize_body",
    "signed_headers",
    "stamp",
    "new_client_order_id",
]


def stamp() -> int:
    """Server-accepted millisecond timestamp."""
    return int(time.time() * 1000)


def new_client_order_id() -> str:
    """Fresh correlation id for one order (uuid4, no dashes)."""
    return uuid.uuid4().hex


def serialize_body(payload: Any) -> str:
    """Compact JSON with ``Decimal`` values emitted as plain numbers."""
    if isinstance(payload, Decimal):
        return format(payload, "f")
    if isinstance(payload, dict):
        return "{" + ",".join(
            f"{json.dumps(str(k))}:{serialize_body(v)}" for k, v in payload.items()
        ) + "}"
    if isinstance(payload, (list, tuple)):
        return "[" + ",".join(serialize_body(v) for v in payload) + "]"
    return json.dumps(payload)


def generate_signature(body: str, secret_key: str) -> str:
    """Return the hex HMAC-SHA256 of ``body`` keyed by ``secret_key``."""
    return hmac.new(secret_key.encode(), body.encode(), hashlib.sha256).hexdigest()


def signed_headers(body: str, api_key: str, secret_key: str) -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-AUTH-APIKEY": api_key,
        "X-AUTH-SIGNATURE": generate_signature(body, secret_key),
    }
