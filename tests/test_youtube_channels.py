"""
Tests for the YouTube Data API lookups.

Run with: python -m pytest tests/test_youtube_channels.py -v
"""

import asyncio
import sys
import os
from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from triathlon_api.config import Settings
from triathlon_api.errors import ConfigurationError, InvalidRequestError, UpstreamError
from triathlon_api.youtube_channels import clamp_results, fetch_videos


SETTINGS = Settings(youtube_api_key="yt-key")


def _executes(result=None, error=None):
    request = MagicMock()
    if error is not None:
        request.execute.side_effect = error
    else:
        request.execute.return_value = result
    return request


def _http_error(status=403):
    resp = MagicMock(status=status, reason="Forbidden")
    return HttpError(resp, b'{"error": {"message": "quotaExceeded"}}')


def _playlist_item(video_id, title):
    return {"snippet": {"title": title, "resourceId": {"kind": "youtube#video", "videoId": video_id}}}


def _fake_youtube(handles, failing_handle=None):
    """
    Build a fake API client.

    handles maps a channel handle to (uploads playlist id, playlist items);
    a handle missing from the mapping resolves to no channel.
    """
    youtube = MagicMock()

    def channels_list(**kwargs):
        handle = kwargs["forHandle"]
        if handle == failing_handle:
            return _executes(error=_http_error())
        if handle not in handles:
            return _executes({"items": []})
        playlist_id = handles[handle][0]
        return _executes({"items": [{"id": "UC" + handle, "contentDetails": {"relatedPlaylists": {"uploads": playlist_id}}}]})

    def playlist_items_list(**kwargs):
        for playlist_id, items in handles.values():
            if playlist_id == kwargs["playlistId"]:
                return _executes({"items": items[:kwargs["maxResults"]]})
        return _executes({"items": []})

    youtube.channels.return_value.list.side_effect = channels_list
    youtube.playlistItems.return_value.list.side_effect = playlist_items_list
    return youtube


class TestClampResults:
    """Tests for clamp_results."""

    @pytest.mark.parametrize("raw, expected", [
        (None, 4), ("", 4), ("2", 2), ("10", 4), ("abc", 4), ("0", 4), ("-3", 4),
    ])
    def test_source_cap(self, raw, expected):
        assert clamp_results(raw, 4, 4) == expected


class TestFetchVideos:
    """Tests for fetch_videos dispatch and fan-out policy."""

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(fetch_videos({"action": "search"}, Settings()))

    @pytest.mark.parametrize("params", [{}, {"action": "bogus"}, {"action": "latest"}])
    def test_invalid_requests(self, params):
        with pytest.raises(InvalidRequestError) as exc_info:
            asyncio.run(fetch_videos(params, SETTINGS))
        assert exc_info.value.status_code == 400

    @patch("triathlon_api.youtube_channels.build")
    def test_latest_passes_upstream_json_through(self, mock_build):
        raw = {"kind": "youtube#searchListResponse", "items": [{"id": {"videoId": "x1"}}]}
        youtube = MagicMock()
        youtube.search.return_value.list.return_value = _executes(raw)
        mock_build.return_value = youtube

        result = asyncio.run(fetch_videos({"action": "latest", "channelId": "UCabc"}, SETTINGS))

        assert result == raw
        kwargs = youtube.search.return_value.list.call_args.kwargs
        assert kwargs["channelId"] == "UCabc"
        assert kwargs["order"] == "date"
        assert kwargs["maxResults"] == 3
        assert mock_build.call_args.kwargs["developerKey"] == "yt-key"

    @patch("triathlon_api.youtube_channels.build")
    def test_channel_videos_use_search_result_shape(self, mock_build):
        mock_build.return_value = _fake_youtube({
            "@WorldTriathlon": ("UUwt", [_playlist_item("wt1", "WTCS Yokohama")]),
            "@T100Triathlon": ("UUt100", [_playlist_item("t1", "T100 San Francisco")]),
            "@IRONMANTriathlon": ("UUim", [_playlist_item("im1", "Kona")]),
        })

        result = asyncio.run(fetch_videos({"action": "channelVideos"}, SETTINGS))

        items = result["items"]
        assert [item["id"]["videoId"] for item in items] == ["wt1", "t1", "im1"]
        assert items[0]["id"]["kind"] == "youtube#video"
        assert items[0]["snippet"]["title"] == "WTCS Yokohama"
        assert [item["source"] for item in items] == ["World Triathlon", "T100", "IRONMAN"]

    @patch("triathlon_api.youtube_channels.build")
    def test_unresolved_handle_contributes_nothing(self, mock_build):
        mock_build.return_value = _fake_youtube({
            "@WorldTriathlon": ("UUwt", [_playlist_item("wt1", "WTCS Yokohama")]),
            "@IRONMANTriathlon": ("UUim", [_playlist_item("im1", "Kona")]),
        })

        result = asyncio.run(fetch_videos({"action": "channelVideos"}, SETTINGS))

        assert [item["id"]["videoId"] for item in result["items"]] == ["wt1", "im1"]

    @patch("triathlon_api.youtube_channels.build")
    def test_api_error_fails_whole_request(self, mock_build):
        mock_build.return_value = _fake_youtube(
            {
                "@WorldTriathlon": ("UUwt", [_playlist_item("wt1", "WTCS Yokohama")]),
                "@IRONMANTriathlon": ("UUim", [_playlist_item("im1", "Kona")]),
            },
            failing_handle="@T100Triathlon",
        )

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(fetch_videos({"action": "channelVideos"}, SETTINGS))

        assert exc_info.value.status_code == 500
        assert exc_info.value.error == "Failed to fetch YouTube videos"

    @patch("triathlon_api.youtube_channels.build")
    def test_search_tags_sources_and_caps_results(self, mock_build):
        youtube = MagicMock()
        youtube.search.return_value.list.side_effect = lambda **kwargs: _executes(
            {"items": [{"id": {"kind": "youtube#video", "videoId": kwargs["q"][:4]}}]}
        )
        mock_build.return_value = youtube

        result = asyncio.run(fetch_videos({"action": "search", "maxResults": "25"}, SETTINGS))

        assert len(result["items"]) == 3
        assert [item["source"] for item in result["items"]] == ["World Triathlon", "T100", "IRONMAN"]
        for call in youtube.search.return_value.list.call_args_list:
            assert call.kwargs["maxResults"] == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
