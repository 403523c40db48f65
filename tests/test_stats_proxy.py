"""
Tests for the World Triathlon API proxy.

Run with: python -m pytest tests/test_stats_proxy.py -v
"""

import itertools
import sys
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from triathlon_api.config import Settings
from triathlon_api.errors import ConfigurationError, InvalidRequestError, TransportError
from triathlon_api.stats_proxy import (
    GENERIC_FAILURE, NOT_RESPONDING, UNREACHABLE, build_upstream_url, fetch_stats,
)


SETTINGS = Settings(triathlon_api_key="stats-secret")


def _upstream(status_code, body):
    response = MagicMock(status_code=status_code)
    response.iter_content.return_value = [body[:4], body[4:]]
    return response


class TestBuildUpstreamUrl:
    """Tests for build_upstream_url."""

    def test_with_params(self):
        url = build_upstream_url("https://api.triathlon.org/v1", "/search/athletes", [("query", "yee")])
        assert url == "https://api.triathlon.org/v1/search/athletes?query=yee"

    def test_without_params(self):
        assert build_upstream_url("https://api.triathlon.org/v1", "/rankings", []) == "https://api.triathlon.org/v1/rankings"

    def test_params_keep_order_and_are_encoded(self):
        url = build_upstream_url("https://x", "/events", [("b", "2"), ("a", "New York")])
        assert url == "https://x/events?b=2&a=New+York"


class TestFetchStats:
    """Tests for fetch_stats with a stubbed upstream."""

    def test_missing_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            fetch_stats("/rankings", [], Settings())
        assert exc_info.value.to_payload() == {"error": "API key not configured"}

    def test_missing_endpoint(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            fetch_stats(None, [("query", "yee")], SETTINGS)
        assert exc_info.value.status_code == 400

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_key_sent_as_header_only(self, mock_get):
        mock_get.return_value = _upstream(200, b'{"data": [{"athlete_id": 1}]}')

        status, data = fetch_stats("/search/athletes", [("query", "yee")], SETTINGS)

        assert status == 200
        assert data == {"data": [{"athlete_id": 1}]}
        url = mock_get.call_args.args[0]
        kwargs = mock_get.call_args.kwargs
        assert url == "https://api.triathlon.org/v1/search/athletes?query=yee"
        assert "stats-secret" not in url
        assert kwargs["headers"]["apikey"] == "stats-secret"
        assert kwargs["timeout"] == 30.0
        assert kwargs["stream"] is True

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_upstream_status_relayed(self, mock_get):
        mock_get.return_value = _upstream(404, b'{"status": "error", "message": "Not found"}')

        status, data = fetch_stats("/athletes/0", [], SETTINGS)

        assert status == 404
        assert data["message"] == "Not found"

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_read_timeout_is_distinct(self, mock_get):
        mock_get.side_effect = requests.exceptions.ReadTimeout("read timed out")

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.status_code == 500
        assert exc_info.value.error == NOT_RESPONDING
        assert exc_info.value.error != GENERIC_FAILURE

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_connect_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectTimeout("connect timed out")

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.error == UNREACHABLE

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_generic_failure_hides_details_outside_development(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("boom")

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.to_payload() == {"error": GENERIC_FAILURE}

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_details_in_development(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("boom")
        settings = Settings(triathlon_api_key="k", app_env="development")

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], settings)

        assert exc_info.value.details == "boom"

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_non_json_body(self, mock_get):
        mock_get.return_value = _upstream(502, b"<html>Bad Gateway</html>")

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.error == GENERIC_FAILURE

    @patch("triathlon_api.stats_proxy.requests.get")
    def test_nan_body_is_a_failure(self, mock_get):
        mock_get.return_value = _upstream(200, b'{"score": NaN}')

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.error == GENERIC_FAILURE

    @patch("triathlon_api.stats_proxy.time.monotonic")
    @patch("triathlon_api.stats_proxy.requests.get")
    def test_slow_body_hits_overall_deadline(self, mock_get, mock_clock):
        upstream = MagicMock(status_code=200)
        upstream.iter_content.return_value = iter([b'{"a"', b": 1", b"2345}"])
        mock_get.return_value = upstream
        # Each chunk arrives well inside the per-read timeout, the total does not
        ticks = itertools.count(0.0, 12.0)
        mock_clock.side_effect = lambda: next(ticks)

        with pytest.raises(TransportError) as exc_info:
            fetch_stats("/rankings", [], SETTINGS)

        assert exc_info.value.error == NOT_RESPONDING
        upstream.close.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
