"""
Unit tests for download module.

Tests JSON fetches and file downloads with mocked network requests.
"""

from unittest.mock import patch

import pytest
import responses

from devstrap.core.download import download_file, fetch_json
from devstrap.core.exceptions import DownloadError

URL = "https://example.com/api"


class TestFetchJson:
    """Tests for fetch_json()."""

    @responses.activate
    def test_success(self):
        """Test JSON body is decoded."""
        responses.add(responses.GET, URL, json={"tag_name": "v1.0"}, status=200)
        assert fetch_json(URL) == {"tag_name": "v1.0"}

    @responses.activate
    def test_sends_user_agent_and_headers(self):
        """Test custom headers are merged with the user agent."""
        responses.add(responses.GET, URL, json={}, status=200)
        fetch_json(URL, headers={"Authorization": "Bearer t"})

        request = responses.calls[0].request
        assert request.headers["User-Agent"] == "devstrap"
        assert request.headers["Authorization"] == "Bearer t"

    @responses.activate
    def test_client_error_not_retried(self):
        """Test 4xx fails immediately."""
        responses.add(responses.GET, URL, status=404)
        with pytest.raises(DownloadError):
            fetch_json(URL, max_retries=3)
        assert len(responses.calls) == 1

    @responses.activate
    def test_server_error_retried(self):
        """Test 5xx is retried with backoff and then succeeds."""
        responses.add(responses.GET, URL, status=503)
        responses.add(responses.GET, URL, json={"ok": True}, status=200)

        with patch("devstrap.core.download.time.sleep") as sleep:
            assert fetch_json(URL, max_retries=3) == {"ok": True}
        sleep.assert_called_once_with(1)

    @responses.activate
    def test_gives_up_after_retries(self):
        """Test the last failure is raised as DownloadError."""
        for _ in range(3):
            responses.add(responses.GET, URL, status=500)

        with patch("devstrap.core.download.time.sleep"):
            with pytest.raises(DownloadError, match="after 3 attempts"):
                fetch_json(URL, max_retries=3)


class TestDownloadFile:
    """Tests for download_file()."""

    @responses.activate
    def test_download(self, temp_dir):
        """Test the body is written to the destination."""
        url = "https://example.com/tool.tar.gz"
        responses.add(responses.GET, url, body=b"payload", status=200)

        path = download_file(url, temp_dir / "sub" / "tool.tar.gz")
        assert path.read_bytes() == b"payload"

    def test_empty_url(self, temp_dir):
        """Test an empty URL is rejected."""
        with pytest.raises(ValueError):
            download_file("", temp_dir / "x")

    @responses.activate
    def test_failed_download_leaves_no_file(self, temp_dir):
        """Test partial files are cleaned up."""
        url = "https://example.com/missing"
        responses.add(responses.GET, url, status=404)

        destination = temp_dir / "missing"
        with pytest.raises(DownloadError):
            download_file(url, destination)
        assert not destination.exists()
