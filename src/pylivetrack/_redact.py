"""Redaction for debug logs.

Stream payloads and directions requests carry the session's bearer
token and the provider API key; neither may reach a log record.  Route
geometry is summarised instead of dumped.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "apikey",
        "authorization",
        "password",
        "token",
        "accesstoken",
    }
)
_BEARER_RE = re.compile(r"\bbearer\s+\S+", re.IGNORECASE)
_MAX_ITEMS = 32


def _scrub(text: str, max_string: int) -> str:
    text = _BEARER_RE.sub("Bearer <redacted>", text)
    if len(text) > max_string:
        return f"{text[:max_string]}...<truncated>"
    return text


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Copy of a decoded JSON value (or request params) that is safe to log."""
    if isinstance(value, str):
        return _scrub(value, max_string)
    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>"
            if str(key).lower() in _SECRET_KEYS
            else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        if len(value) > _MAX_ITEMS:
            return f"<{len(value)} items>"
        return [redact_for_log(item, max_string=max_string) for item in value]
    return value
