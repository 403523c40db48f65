"""
World Triathlon API proxy.

Forwards an endpoint path and its query parameters to the statistics API,
adding the server-held API key so it never reaches the browser.
"""

import logging
import time
from typing import Any, Iterable, Optional, Tuple
from urllib.parse import urlencode

import requests

from .config import Settings
from .errors import ConfigurationError, InvalidRequestError, TransportError
from .utils import loads_strict


logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to fetch from triathlon API"
NOT_RESPONDING = "Connection timeout - the API server is not responding. Please try again later."
UNREACHABLE = "Connection timeout - unable to reach the API server. Please check your internet connection."

BODY_CHUNK_SIZE = 8192


def build_upstream_url(base_url: str, endpoint: str, params: Iterable[Tuple[str, str]]) -> str:
    """
    Join the API base, the endpoint path and the passthrough query string.

    Args:
        base_url: e.g. "https://api.triathlon.org/v1".
        endpoint: Path fragment such as "/search/athletes".
        params: Query parameters in the order the caller sent them.
    """
    query_string = urlencode(list(params))
    return f"{base_url}{endpoint}{'?' + query_string if query_string else ''}"


def _describe_failure(exc: Exception) -> str:
    if isinstance(exc, requests.exceptions.ConnectTimeout):
        return UNREACHABLE
    if isinstance(exc, requests.exceptions.Timeout):
        return NOT_RESPONDING
    return GENERIC_FAILURE


def _read_body(response: requests.Response, deadline: float) -> bytes:
    """Read the whole body, aborting once the overall deadline has passed."""
    chunks = []
    for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
        chunks.append(chunk)
        if time.monotonic() > deadline:
            raise requests.exceptions.ReadTimeout("Response body not received within the deadline")
    return b"".join(chunks)


def fetch_stats(
    endpoint: Optional[str],
    params: Iterable[Tuple[str, str]],
    settings: Settings,
) -> Tuple[int, Any]:
    """
    Proxy one request to the statistics API.

    Returns:
        (status_code, decoded JSON body) exactly as the upstream answered.

    Raises:
        ConfigurationError: TRIATHLON_API_KEY is not set.
        InvalidRequestError: No endpoint was given.
        TransportError: Timeout, connection failure or a non-JSON reply.
    """
    if not settings.triathlon_api_key:
        raise ConfigurationError("API key not configured")
    if not endpoint:
        raise InvalidRequestError("Missing endpoint parameter")

    url = build_upstream_url(settings.triathlon_base_url, endpoint, params)
    deadline = time.monotonic() + settings.stats_timeout

    try:
        response = requests.get(
            url,
            headers={
                "apikey": settings.triathlon_api_key,
                "Accept": "application/json",
            },
            timeout=settings.stats_timeout,
            stream=True,
        )
        try:
            data = loads_strict(_read_body(response, deadline))
        finally:
            response.close()
    except (requests.RequestException, ValueError) as e:
        logger.error("API proxy error for %s: %s", endpoint, e)
        raise TransportError(
            _describe_failure(e),
            details=str(e) if settings.is_development else None,
        ) from e

    return response.status_code, data
