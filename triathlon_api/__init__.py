"""
Triathlon Stats Gateway - Source Package

Server-side proxies for a triathlon statistics web app: natural language
search through an LLM, the World Triathlon API, and YouTube video feeds.
"""

from .config import Settings, DEFAULT_LLM_MODEL
from .errors import (
    GatewayError, ConfigurationError, InvalidRequestError, MethodNotAllowedError,
    UpstreamError, TransportError, EmptyReplyError,
)
from .models import (
    QueryRequest, ActionType, ActionDescriptor, VideoItem, VideoFeedResponse,
    ErrorResponse, HealthResponse,
)
from .prompts import DEFAULT_KNOWLEDGE_BASE, build_system_prompt, load_knowledge_base
from .query_agent import parse_query_request, translate_query
from .stats_proxy import build_upstream_url, fetch_stats
from .video_feed import collect_recent_videos, parse_feed
from .youtube_channels import fetch_videos

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "DEFAULT_LLM_MODEL",
    # Errors
    "GatewayError",
    "ConfigurationError",
    "InvalidRequestError",
    "MethodNotAllowedError",
    "UpstreamError",
    "TransportError",
    "EmptyReplyError",
    # Models
    "QueryRequest",
    "ActionType",
    "ActionDescriptor",
    "VideoItem",
    "VideoFeedResponse",
    "ErrorResponse",
    "HealthResponse",
    # Prompts
    "DEFAULT_KNOWLEDGE_BASE",
    "build_system_prompt",
    "load_knowledge_base",
    # Query handler
    "parse_query_request",
    "translate_query",
    # Stats proxy
    "build_upstream_url",
    "fetch_stats",
    # Videos
    "collect_recent_videos",
    "parse_feed",
    "fetch_videos",
]
