"""
Shared utilities for the Triathlon Stats Gateway.

Consolidates the small text and response helpers used by several handlers.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# =============================================================================
# CORS Helpers
# =============================================================================

def cors_headers(methods: str, allow_headers: Optional[str] = None) -> Dict[str, str]:
    """
    Build permissive CORS headers for a route.

    Args:
        methods: Value for Access-Control-Allow-Methods, e.g. "GET".
        allow_headers: Optional value for Access-Control-Allow-Headers.

    Returns:
        Header name to value mapping.
    """
    headers = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": methods,
    }
    if allow_headers:
        headers["Access-Control-Allow-Headers"] = allow_headers
    return headers


# =============================================================================
# String Helpers
# =============================================================================

_XML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
)


def decode_xml_entities(text: str) -> str:
    """
    Replace the common XML character entities with literal characters.

    Args:
        text: Escaped text, as found inside a feed element.

    Returns:
        The decoded text. Text without entities is returned unchanged.
    """
    for entity, char in _XML_ENTITIES:
        text = text.replace(entity, char)
    return text


# =============================================================================
# JSON Helpers
# =============================================================================

def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads_strict(text: Any) -> Any:
    """
    Decode JSON, refusing the ``NaN``/``Infinity`` extensions.

    Those values could not be rendered back out in a response, so they are
    treated like any other malformed document.
    """
    return json.loads(text, parse_constant=_reject_constant)


# =============================================================================
# Error Detection Helpers
# =============================================================================

def extract_error_message(status_code: int, body: str) -> str:
    """
    Pull the most useful message out of an upstream error body.

    Prefers a JSON ``error.message`` field, then the JSON body itself,
    then the raw text, then ``"HTTP <code>"``.
    """
    try:
        data: Any = loads_strict(body)
    except ValueError:
        return body or f"HTTP {status_code}"

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Date Helpers
# =============================================================================

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def safe_parse_timestamp(value: Optional[str]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Unparseable or missing values map to the oldest possible time so they
    sort last in a newest-first ordering.
    """
    if not value:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
