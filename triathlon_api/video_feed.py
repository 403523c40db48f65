"""
Recent triathlon videos from YouTube channel RSS feeds.

The public feeds need no API key. Each channel is fetched concurrently and a
channel that fails simply contributes nothing to the merged list.
"""

import asyncio
import logging
import re
from typing import Dict, List, Sequence, Tuple

import requests

from .models import VideoItem
from .utils import decode_xml_entities, safe_parse_timestamp


# =============================================================================
# Configuration
# =============================================================================

logger = logging.getLogger(__name__)

FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
CHANNEL_URL = "https://www.youtube.com/channel/{channel_id}"
THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"

# (channel id, display name)
FEED_CHANNELS: Tuple[Tuple[str, str], ...] = (
    ("UCbWZDxB8V1VmFmN6t4KNIYQ", "World Triathlon"),
    ("UCHVhEkLpPMIog7k4v9A_plg", "T100 Triathlon"),
)

ENTRIES_PER_FEED = 5
MAX_VIDEOS = 8

CACHE_CONTROL = "s-maxage=3600, stale-while-revalidate"

_ENTRY_RE = re.compile(r"<entry>([\s\S]*?)</entry>")
_VIDEO_ID_RE = re.compile(r"<yt:videoId>(.*?)</yt:videoId>")
_TITLE_RE = re.compile(r"<title>(.*?)</title>")
_PUBLISHED_RE = re.compile(r"<published>(.*?)</published>")


# =============================================================================
# Feed Parsing
# =============================================================================

def _first_group(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match else ""


def parse_feed(xml: str, channel_id: str, channel_name: str, limit: int = ENTRIES_PER_FEED) -> List[Dict[str, str]]:
    """
    Extract the leading entries of an Atom feed.

    Args:
        xml: Raw feed text.
        channel_id: Channel the feed belongs to.
        channel_name: Label copied onto every video.
        limit: Number of leading entries to look at.

    Returns:
        Video dicts; entries without a video id are skipped.
    """
    videos = []
    for entry in _ENTRY_RE.findall(xml)[:limit]:
        video_id = _first_group(_VIDEO_ID_RE, entry)
        if not video_id:
            continue
        videos.append(VideoItem(
            id=video_id,
            title=decode_xml_entities(_first_group(_TITLE_RE, entry)),
            channel=channel_name,
            channelUrl=CHANNEL_URL.format(channel_id=channel_id),
            published=_first_group(_PUBLISHED_RE, entry),
            thumbnail=THUMBNAIL_URL.format(video_id=video_id),
        ).model_dump())
    return videos


def fetch_channel_feed(channel_id: str, channel_name: str) -> List[Dict[str, str]]:
    """Fetch and parse one channel's feed. Raises on HTTP or network errors."""
    response = requests.get(FEED_URL.format(channel_id=channel_id))
    response.raise_for_status()
    return parse_feed(response.text, channel_id, channel_name)


# =============================================================================
# Aggregation
# =============================================================================

def merge_videos(batches: Sequence[List[Dict[str, str]]], limit: int = MAX_VIDEOS) -> List[Dict[str, str]]:
    """Concatenate per-channel results, newest first, keeping the first ``limit``."""
    videos = [video for batch in batches for video in batch]
    videos.sort(key=lambda v: safe_parse_timestamp(v.get("published")), reverse=True)
    return videos[:limit]


async def collect_recent_videos(
    channels: Sequence[Tuple[str, str]] = FEED_CHANNELS,
    limit: int = MAX_VIDEOS,
) -> List[Dict[str, str]]:
    """
    Fetch every channel feed concurrently and merge the results.

    A failing channel is logged and skipped; it never fails the whole call.
    """
    results = await asyncio.gather(
        *(asyncio.to_thread(fetch_channel_feed, channel_id, name) for channel_id, name in channels),
        return_exceptions=True,
    )

    batches = []
    for (channel_id, name), result in zip(channels, results):
        if isinstance(result, Exception):
            logger.warning("Failed to fetch feed for %s (%s): %s", name, channel_id, result)
            continue
        batches.append(result)

    return merge_videos(batches, limit)
