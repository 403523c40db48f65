"""
Error types raised by the gateway handlers.

Each error knows its HTTP status and the JSON body sent to the caller.
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base class for caller-visible failures."""

    status_code = 500

    def __init__(
        self,
        error: str,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(error)
        self.error = error
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        payload.update(self.extra)
        return payload


class ConfigurationError(GatewayError):
    """A required secret or setting is missing."""
    status_code = 500


class InvalidRequestError(GatewayError):
    """A required parameter is missing or malformed."""
    status_code = 400


class MethodNotAllowedError(GatewayError):
    status_code = 405

    def __init__(self):
        super().__init__("Method not allowed")


class UpstreamError(GatewayError):
    """A third-party service answered with a failure; its status code is reused."""


class TransportError(GatewayError):
    """Network failure or timeout talking to a third-party service."""
    status_code = 500


class EmptyReplyError(UpstreamError):
    """A third-party service answered 2xx but without usable content."""
    status_code = 500
