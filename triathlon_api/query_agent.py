"""
Query agent - turns natural language triathlon questions into UI actions.

Handles queries like:
- "Who won the Paris Olympics?"
- "Compare Alex Yee and Hayden Wilde"
- "WTCS schedule for 2026"

The user's text is sent with the domain knowledge base to the LLM, whose
JSON reply is relayed to the caller as an action descriptor.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, Optional, Union

import requests

from .config import ANTHROPIC_VERSION, Settings
from .errors import (
    ConfigurationError,
    EmptyReplyError,
    InvalidRequestError,
    TransportError,
    UpstreamError,
)
from .models import QueryRequest, fallback_answer
from .prompts import build_system_prompt
from .utils import extract_error_message, loads_strict


logger = logging.getLogger(__name__)


# =============================================================================
# Request Parsing
# =============================================================================

def parse_query_request(raw_body: Union[bytes, str, None]) -> QueryRequest:
    """
    Read the ``query`` field from a request body.

    The body may be a JSON object, or a JSON string that itself holds the
    JSON object (clients that post ``text/plain``).

    Raises:
        InvalidRequestError: For any other shape, or an empty or non-string query.
    """
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode("utf-8", errors="replace")

    payload: Any = None
    if raw_body:
        try:
            payload = json.loads(raw_body)
            if isinstance(payload, str):
                payload = json.loads(payload)
        except ValueError:
            payload = None

    query = payload.get("query") if isinstance(payload, dict) else None
    if not query or not isinstance(query, str):
        raise InvalidRequestError("Missing query parameter")
    return QueryRequest(query=query)


def require_api_key(settings: Settings) -> str:
    """Return the LLM key, or fail with a payload naming candidate env vars."""
    if settings.anthropic_api_key:
        return settings.anthropic_api_key
    raise ConfigurationError(
        "Anthropic API key not configured",
        details="Set ANTHROPIC_API_KEY (or CLAUDE_KEY) in the environment",
        extra={"debug": {"relevantEnvVars": list(settings.relevant_env_vars)}},
    )


# =============================================================================
# LLM Call
# =============================================================================

def _call_llm(api_key: str, query: str, system_prompt: str, settings: Settings) -> Dict[str, Any]:
    """Send a single-turn message and return the decoded reply."""
    try:
        response = requests.post(
            settings.anthropic_url,
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            json={
                "model": settings.anthropic_model,
                "max_tokens": settings.max_tokens,
                "system": system_prompt,
                "messages": [
                    {"role": "user", "content": query},
                ],
            },
        )
    except requests.RequestException as e:
        logger.error("Claude API proxy error: %s", e)
        raise TransportError("Failed to connect to Claude API", details=str(e) or "Unknown error") from e

    if not response.ok:
        body = response.text
        logger.error("Claude API error: %s %s", response.status_code, body)
        raise UpstreamError(
            "Claude API error",
            details=extract_error_message(response.status_code, body),
            status_code=response.status_code,
            extra={"status": response.status_code},
        )

    try:
        return response.json()
    except ValueError as e:
        logger.error("Claude API returned a non-JSON body: %s", e)
        raise TransportError("Failed to connect to Claude API", details=str(e) or "Unknown error") from e


def extract_text(reply: Dict[str, Any]) -> Optional[str]:
    """Return the text of the first ``text`` content block, if any."""
    content = reply.get("content") if isinstance(reply, dict) else None
    for block in content or []:
        if isinstance(block, dict) and block.get("type") == "text":
            return block.get("text")
    return None


def interpret_reply(text: str) -> Any:
    """
    Decode the model's text as an action descriptor.

    Text that is not valid JSON becomes an ``answer`` action carrying the
    raw text, so the caller never fails on a chatty reply.
    """
    try:
        return loads_strict(text)
    except ValueError:
        logger.info("LLM reply was not JSON, returning it as an answer")
        return fallback_answer(text)


# =============================================================================
# Public API
# =============================================================================

def translate_query(
    query: str,
    settings: Settings,
    knowledge_base: str,
    today: Optional[date] = None,
) -> Any:
    """
    Translate a user question into an action descriptor.

    Args:
        query: The user's free-text question.
        settings: Gateway settings holding the LLM key and model.
        knowledge_base: Prompt template describing the domain and actions.
        today: Date to embed in the prompt. Defaults to the current UTC date.

    Returns:
        The decoded action descriptor (the model's JSON, or the fallback).

    Raises:
        ConfigurationError: No LLM key configured.
        UpstreamError: The LLM answered with a non-2xx status.
        TransportError: The LLM could not be reached.
    """
    api_key = require_api_key(settings)
    system_prompt = build_system_prompt(knowledge_base, today)

    reply = _call_llm(api_key, query, system_prompt, settings)

    text = extract_text(reply)
    if not text:
        raise EmptyReplyError("No response from Claude")
    return interpret_reply(text)

