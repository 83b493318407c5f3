"""Unit tests for series_match_service.services.catalog_client."""

from unittest.mock import patch

import pytest
import requests
from requests.exceptions import HTTPError

from series_match_service.models import CatalogItem
from series_match_service.services.catalog_client import CatalogClient, extract_video_id

API_URL = "https://catalog.test/v3"


def video_payload(video_id: str, title: str, channel_id: str = "UCchannel001") -> dict:
    return {
        "id": video_id,
        "snippet": {
            "title": title,
            "description": f"{title} description",
            "channelId": channel_id,
            "channelTitle": "Storyteller",
            "publishedAt": "2024-01-01T00:00:00Z",
            "thumbnails": {"medium": {"url": f"https://img.test/{video_id}.jpg"}},
        },
        "statistics": {"viewCount": "1000"},
        "contentDetails": {"duration": "PT10M"},
    }


def search_payload(video_ids, next_page_token=None) -> dict:
    payload = {"items": [{"id": {"kind": "youtube#video", "videoId": v}} for v in video_ids]}
    if next_page_token:
        payload["nextPageToken"] = next_page_token
    return payload


@pytest.fixture
def client():
    """CatalogClient pointed at a fake API."""
    return CatalogClient(api_url=API_URL, api_key="test-key")


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("series_match_service.services.catalog_client.time.sleep"):
        yield


class TestExtractVideoId:
    """Tests for extract_video_id function."""

    @pytest.mark.parametrize("reference, expected", [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42s", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?si=abc", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/shorts/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("  dQw4w9WgXcQ  ", "dQw4w9WgXcQ"),
    ])
    def test_valid_references(self, reference, expected):
        """Test supported URL shapes and bare IDs."""
        assert extract_video_id(reference) == expected

    @pytest.mark.parametrize("reference", [None, "", "not a video", "https://example.com/watch", "short"])
    def test_invalid_references(self, reference):
        """Test unparseable references return None."""
        assert extract_video_id(reference) is None


class TestCatalogClientInit:
    """Tests for CatalogClient initialization."""

    def test_init_from_config(self, mock_config):
        """Test URL and key come from config."""
        client = CatalogClient()

        assert client.api_url == "https://catalog.test/v3"
        assert client.api_key == "test-yt-key"

    def test_init_strips_trailing_slash(self):
        """Test the base URL is normalized."""
        client = CatalogClient(api_url="https://catalog.test/v3/", api_key="k")

        assert client.api_url == "https://catalog.test/v3"

    def test_init_configures_retry_strategy(self, client):
        """Test that session is configured with retry strategy."""
        adapter = client.session.get_adapter("https://catalog.test")

        assert adapter.max_retries.total == 3
        assert 429 in adapter.max_retries.status_forcelist


class TestGetVideos:
    """Tests for get_videos method."""

    def test_get_videos(self, client, requests_mock):
        """Test video payloads are mapped to CatalogItems."""
        # Arrange
        requests_mock.get(f"{API_URL}/videos", json={"items": [video_payload("vid00000002", "Storytime Part 2")]})

        # Act
        items = client.get_videos(["vid00000002"])

        # Assert
        assert len(items) == 1
        item = items[0]
        assert isinstance(item, CatalogItem)
        assert item.title == "Storytime Part 2"
        assert item.channel_id == "UCchannel001"
        assert item.view_count == "1000"
        assert item.duration == "PT10M"
        assert item.thumbnail == "https://img.test/vid00000002.jpg"

    def test_get_videos_sends_key_and_ids(self, client, requests_mock):
        """Test query parameters."""
        requests_mock.get(f"{API_URL}/videos", json={"items": []})

        client.get_videos(["a", "b"])

        query = requests_mock.last_request.qs
        assert query["id"] == ["a,b"]
        assert query["key"] == ["test-key"]

    def test_get_videos_empty_ids(self, client, requests_mock):
        """Test no request is made for an empty ID list."""
        assert client.get_videos([]) == []
        assert requests_mock.call_count == 0

    def test_get_videos_raises_on_http_error(self, client, requests_mock):
        """Test HTTP errors propagate."""
        requests_mock.get(f"{API_URL}/videos", status_code=403)

        with pytest.raises(HTTPError):
            client.get_videos(["vid00000002"])


class TestGetItemDetails:
    """Tests for get_item_details method."""

    def test_found(self, client, requests_mock):
        """Test a single video is returned."""
        requests_mock.get(f"{API_URL}/videos", json={"items": [video_payload("vid00000002", "Storytime Part 2")]})

        item = client.get_item_details("vid00000002")

        assert item.id == "vid00000002"

    def test_not_found(self, client, requests_mock):
        """Test an empty listing returns None."""
        requests_mock.get(f"{API_URL}/videos", json={"items": []})

        assert client.get_item_details("vid00000002") is None

    def test_http_error_returns_none(self, client, requests_mock):
        """Test HTTP errors are absorbed."""
        requests_mock.get(f"{API_URL}/videos", status_code=500)

        assert client.get_item_details("vid00000002") is None

    def test_connection_error_returns_none(self, client, requests_mock):
        """Test transport errors are absorbed."""
        requests_mock.get(f"{API_URL}/videos", exc=requests.exceptions.ConnectTimeout)

        assert client.get_item_details("vid00000002") is None


class TestGetAllItemsForChannel:
    """Tests for get_all_items_for_channel method."""

    def test_paginates_until_no_token(self, client, requests_mock):
        """Test pages are followed until nextPageToken is absent."""
        # Arrange
        requests_mock.get(f"{API_URL}/search", [
            {"json": search_payload(["v1", "v2"], next_page_token="page2")},
            {"json": search_payload(["v3"])},
        ])
        requests_mock.get(f"{API_URL}/videos", [
            {"json": {"items": [video_payload("v1", "Part 1"), video_payload("v2", "Part 2")]}},
            {"json": {"items": [video_payload("v3", "Part 3")]}},
        ])

        # Act
        items = client.get_all_items_for_channel("UCchannel001")

        # Assert
        assert [i.id for i in items] == ["v1", "v2", "v3"]
        search_requests = [r for r in requests_mock.request_history if r.path.endswith("/search")]
        assert search_requests[0].qs["maxresults"] == ["50"]
        assert search_requests[0].qs["order"] == ["date"]
        assert search_requests[1].qs["pagetoken"] == ["page2"]

    def test_truncates_to_max_items(self, client, requests_mock):
        """Test the result never exceeds the cap."""
        requests_mock.get(f"{API_URL}/search", json=search_payload(["v1", "v2", "v3"], next_page_token="more"))
        requests_mock.get(f"{API_URL}/videos", json={"items": [
            video_payload("v1", "Part 1"), video_payload("v2", "Part 2"), video_payload("v3", "Part 3")
        ]})

        items = client.get_all_items_for_channel("UCchannel001", max_items=2)

        assert [i.id for i in items] == ["v1", "v2"]

    def test_stops_on_empty_page(self, client, requests_mock):
        """Test an empty search page ends the listing."""
        requests_mock.get(f"{API_URL}/search", json={"items": []})

        assert client.get_all_items_for_channel("UCchannel001") == []

    def test_error_returns_partial_results(self, client, requests_mock):
        """Test videos fetched before a failure are kept."""
        requests_mock.get(f"{API_URL}/search", [
            {"json": search_payload(["v1"], next_page_token="page2")},
            {"status_code": 500},
        ])
        requests_mock.get(f"{API_URL}/videos", json={"items": [video_payload("v1", "Part 1")]})

        items = client.get_all_items_for_channel("UCchannel001")

        assert [i.id for i in items] == ["v1"]

    def test_first_page_error_returns_empty(self, client, requests_mock):
        """Test a failure on the first page gives an empty list."""
        requests_mock.get(f"{API_URL}/search", status_code=403)

        assert client.get_all_items_for_channel("UCchannel001") == []
