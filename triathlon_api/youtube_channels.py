"""
YouTube Data API video lookups for triathlon channels.

Supports three actions:
- latest: most recent uploads of one channel (raw search response)
- channelVideos: uploads of a fixed set of channel handles
- search: results for a fixed set of search queries

Multi-source actions run their lookups concurrently. Any API error fails the
whole request; a handle that matches no channel just contributes no items.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import ConfigurationError, InvalidRequestError, TransportError, UpstreamError


# =============================================================================
# Configuration
# =============================================================================

logger = logging.getLogger(__name__)

ACTION_LATEST = "latest"
ACTION_CHANNEL_VIDEOS = "channelVideos"
ACTION_SEARCH = "search"

# (channel handle, source label)
CHANNEL_SOURCES: Tuple[Tuple[str, str], ...] = (
    ("@WorldTriathlon", "World Triathlon"),
    ("@T100Triathlon", "T100"),
    ("@IRONMANTriathlon", "IRONMAN"),
)

# (search query, source label)
SEARCH_SOURCES: Tuple[Tuple[str, str], ...] = (
    ("WTCS triathlon highlights", "World Triathlon"),
    ("T100 triathlon race highlights", "T100"),
    ("IRONMAN world championship highlights", "IRONMAN"),
)

DEFAULT_LATEST_RESULTS = 3
MAX_LATEST_RESULTS = 50
DEFAULT_SOURCE_RESULTS = 4
MAX_SOURCE_RESULTS = 4


# =============================================================================
# Helpers
# =============================================================================

def _get_youtube_client(api_key: str):
    """Build a YouTube API client. Clients are not shared across threads."""
    return build("youtube", "v3", developerKey=api_key, cache_discovery=False)


def clamp_results(raw: Optional[str], default: int, upper: int) -> int:
    """Parse a ``maxResults`` parameter, falling back to ``default`` and capping at ``upper``."""
    try:
        value = int(raw) if raw else default
    except ValueError:
        value = default
    if value < 1:
        value = default
    return min(value, upper)


def _as_search_result(playlist_item: Dict[str, Any], source: str) -> Dict[str, Any]:
    """Reshape a playlist entry so it looks like a search result."""
    snippet = playlist_item.get("snippet", {})
    video_id = snippet.get("resourceId", {}).get("videoId")
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": snippet,
        "source": source,
    }


# =============================================================================
# YouTube API Lookups
# =============================================================================

def fetch_latest_for_channel(api_key: str, channel_id: str, max_results: int) -> Dict[str, Any]:
    """Newest videos of one channel, as the raw search response."""
    youtube = _get_youtube_client(api_key)
    return youtube.search().list(
        part="snippet",
        channelId=channel_id,
        order="date",
        type="video",
        maxResults=max_results,
    ).execute()


def search_source(api_key: str, query: str, source: str, max_results: int) -> List[Dict[str, Any]]:
    """Run one search query and tag each result with its source label."""
    youtube = _get_youtube_client(api_key)
    response = youtube.search().list(
        part="snippet",
        q=query,
        type="video",
        order="date",
        maxResults=max_results,
    ).execute()
    return [dict(item, source=source) for item in response.get("items", [])]


def resolve_uploads_playlist(youtube, handle: str) -> Optional[str]:
    """Map a channel handle to its uploads playlist id, or None if unknown."""
    response = youtube.channels().list(part="id,contentDetails", forHandle=handle).execute()
    items = response.get("items") or []
    if not items:
        return None
    return items[0].get("contentDetails", {}).get("relatedPlaylists", {}).get("uploads")


def fetch_channel_uploads(api_key: str, handle: str, source: str, max_results: int) -> List[Dict[str, Any]]:
    """Latest uploads of the channel behind ``handle``, in search-result shape."""
    youtube = _get_youtube_client(api_key)
    playlist_id = resolve_uploads_playlist(youtube, handle)
    if not playlist_id:
        logger.warning("No channel found for handle %s", handle)
        return []

    response = youtube.playlistItems().list(
        part="snippet",
        playlistId=playlist_id,
        maxResults=max_results,
    ).execute()
    return [_as_search_result(item, source) for item in response.get("items", [])]


# =============================================================================
# Fan-out
# =============================================================================

async def collect_channel_videos(api_key: str, max_results: int) -> List[Dict[str, Any]]:
    """Uploads of every fixed channel. The first failure aborts the lot."""
    batches = await asyncio.gather(*(
        asyncio.to_thread(fetch_channel_uploads, api_key, handle, source, max_results)
        for handle, source in CHANNEL_SOURCES
    ))
    return [item for batch in batches for item in batch]


async def collect_search_videos(api_key: str, max_results: int) -> List[Dict[str, Any]]:
    """Results of every fixed search query. The first failure aborts the lot."""
    batches = await asyncio.gather(*(
        asyncio.to_thread(search_source, api_key, query, source, max_results)
        for query, source in SEARCH_SOURCES
    ))
    return [item for batch in batches for item in batch]


# =============================================================================
# Public API
# =============================================================================

async def fetch_videos(params: Mapping[str, str], settings: Settings) -> Dict[str, Any]:
    """
    Dispatch a request on its ``action`` parameter.

    Args:
        params: Query parameters (``action``, ``channelId``, ``maxResults``).
        settings: Gateway settings holding the YouTube API key.

    Returns:
        The raw search response for ``latest``; ``{"items": [...]}`` otherwise.

    Raises:
        ConfigurationError: YOUTUBE_API_KEY is not set.
        InvalidRequestError: Unknown action, or ``latest`` without a channel id.
        UpstreamError: The YouTube API rejected a call.
        TransportError: The YouTube API could not be reached.
    """
    api_key = settings.youtube_api_key
    if not api_key:
        raise ConfigurationError("YouTube API key not configured")

    action = params.get("action")
    max_results = params.get("maxResults")

    if action == ACTION_LATEST:
        channel_id = params.get("channelId")
        if not channel_id:
            raise InvalidRequestError("Missing channelId parameter")
        call = asyncio.to_thread(
            fetch_latest_for_channel,
            api_key,
            channel_id,
            clamp_results(max_results, DEFAULT_LATEST_RESULTS, MAX_LATEST_RESULTS),
        )
    elif action == ACTION_CHANNEL_VIDEOS:
        call = collect_channel_videos(api_key, clamp_results(max_results, DEFAULT_SOURCE_RESULTS, MAX_SOURCE_RESULTS))
    elif action == ACTION_SEARCH:
        call = collect_search_videos(api_key, clamp_results(max_results, DEFAULT_SOURCE_RESULTS, MAX_SOURCE_RESULTS))
    else:
        raise InvalidRequestError(
            "Invalid action parameter",
            details=f"Use one of: {ACTION_LATEST}, {ACTION_CHANNEL_VIDEOS}, {ACTION_SEARCH}",
        )

    try:
        result = await call
    except HttpError as e:
        logger.error("YouTube HttpError during %s: %s", action, e)
        raise UpstreamError("Failed to fetch YouTube videos", details=str(e), status_code=500) from e
    except Exception as e:
        logger.error("YouTube API request failed during %s: %s", action, e)
        raise TransportError("Failed to fetch YouTube videos", details=str(e) or "Unknown error") from e

    if action == ACTION_LATEST:
        return result
    return {"items": result}
