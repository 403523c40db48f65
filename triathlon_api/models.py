"""
Pydantic models for the Triathlon Stats Gateway.

Separates request/response shapes from the handler logic.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


# =============================================================================
# Request Models
# =============================================================================

class QueryRequest(BaseModel):
    """Natural-language question sent to the query handler."""
    query: str


# =============================================================================
# Action Models
# =============================================================================

class ActionType(str, Enum):
    SEARCH_ATHLETE = "search_athlete"
    SEARCH_EVENT = "search_event"
    GET_RANKINGS = "get_rankings"
    SHOW_FAVORITES = "show_favorites"
    COMPARE_ATHLETES = "compare_athletes"
    GET_UPCOMING_EVENTS = "get_upcoming_events"
    GET_EVENT_CALENDAR = "get_event_calendar"
    ANSWER = "answer"


class ActionDescriptor(BaseModel):
    """
    UI action chosen by the LLM.

    The model's JSON is relayed as-is, so unknown fields are kept and
    ``action`` is not checked against ActionType.
    """
    model_config = ConfigDict(extra="allow")

    action: Any = None
    params: Optional[Dict[str, Any]] = None
    answer: Optional[str] = None
    explanation: Optional[str] = None


FALLBACK_EXPLANATION = "Here's what I found:"


def fallback_answer(text: str) -> Dict[str, Any]:
    """Wrap raw model text in an ``answer`` action."""
    return ActionDescriptor(
        action=ActionType.ANSWER.value,
        answer=text,
        explanation=FALLBACK_EXPLANATION,
    ).model_dump(exclude_none=True)


# =============================================================================
# Video Models
# =============================================================================

class VideoItem(BaseModel):
    """A single video taken from a channel's RSS feed."""
    id: str
    title: str
    channel: str
    channelUrl: str
    published: str
    thumbnail: str


class VideoFeedResponse(BaseModel):
    videos: List[VideoItem] = []


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
