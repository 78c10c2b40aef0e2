"""
Request signing helpers for the WEEX REST API.

WEEX authenticates private calls with
``base64(HMAC-SHA256(secret, timestamp + METHOD + path + query + body))``.
The helpers here are pure so the exact pre-hash string can be reproduced and
tested independently of any transport.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Any, Mapping
from urllib.parse import urlencode


def current_timestamp_ms() -> str:
    """Milliseconds since the Unix epoch as a decimal string."""
    return str(int(time.time() * 1000))


def canonical_query(params: Mapping[str, Any] | str | None) -> str:
    """
    Return the query string exactly as it is signed and sent.

    Mappings are encoded in insertion order with ``None`` values dropped.
    Pre-built strings are used verbatim apart from the leading ``?``.
    """
    if not params:
        return ""
    if isinstance(params, str):
        return params if params.startswith("?") else f"?{params}"
    pairs = [(key, _format_param(value)) for key, value in params.items() if value is not None]
    if not pairs:
        return ""
    return "?" + urlencode(pairs)


def build_prehash(
    timestamp: str,
    method: str,
    path: str,
    query: str = "",
    body: str = "",
) -> str:
    if not path.startswith("/"):
        raise ValueError(f"Request path must start with '/': {path!r}")
    if "?" in path:
        raise ValueError(f"Request path must not carry a query string: {path!r}")
    if query and not query.startswith("?"):
        raise ValueError(f"Query string must start with '?': {query!r}")
    # Bodies are serialized JSON documents, so query and body cannot run together.
    if body and not body.startswith(("{", "[")):
        raise ValueError(f"Request body must be a JSON object or array: {body[:40]!r}")
    return f"{timestamp}{method.upper()}{path}{query}{body}"


def sign(secret_key: str, message: str) -> str:
    mac = hmac.new(
        secret_key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    )
    return base64.b64encode(mac.digest()).decode("utf-8")


def sign_request(
    secret_key: str,
    timestamp: str,
    method: str,
    path: str,
    query: str = "",
    body: str = "",
) -> str:
    """Sign one request; GET requests pass an empty body."""
    return sign(secret_key, build_prehash(timestamp, method, path, query, body))


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
