"""Client for the external video catalog (YouTube Data API v3)"""
from typing import List, Dict, Optional
import re
import time
import logging
import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from series_match_service.config import get_catalog_api_url, get_catalog_api_key
from series_match_service.models import CatalogItem

logger = logging.getLogger(__name__)

VIDEO_URL_PATTERNS = [
    re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)([^&\n?#]+)'),
    re.compile(r'youtube\.com/embed/([^&\n?#]+)'),
]
BARE_VIDEO_ID = re.compile(r'^[A-Za-z0-9_-]{11}$')


def extract_video_id(reference: str | None) -> Optional[str]:
    """
    Extract the video ID from a watch, short link, shorts or embed URL.

    Args:
        reference: URL or bare 11-character video ID

    Returns:
        Video ID or None if the reference cannot be parsed
    """
    if not reference:
        return None

    reference = reference.strip()
    for pattern in VIDEO_URL_PATTERNS:
        match = pattern.search(reference)
        if match:
            return match.group(1)

    if BARE_VIDEO_ID.match(reference):
        return reference

    return None


class CatalogClient:
    """Fetch video details and channel uploads from the catalog API."""

    def __init__(
            self,
            api_url: Optional[str] = None,
            api_key: Optional[str] = None,
            timeout: float = 10
    ):
        self.api_url = (api_url or get_catalog_api_url()).rstrip('/')
        self.api_key = api_key or get_catalog_api_key()
        self.timeout = timeout

        # Configure session with retries
        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        # noinspection HttpUrlsUsage
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _get(self, endpoint: str, params: Dict) -> Dict:
        params = dict(params)
        if self.api_key:
            params['key'] = self.api_key
        response = self.session.get(f"{self.api_url}/{endpoint}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _to_item(video: Dict) -> CatalogItem:
        snippet = video.get('snippet', {})
        statistics = video.get('statistics', {})
        content_details = video.get('contentDetails', {})
        thumbnail = snippet.get('thumbnails', {}).get('medium', {}).get('url')
        return CatalogItem(
            id=video['id'],
            title=snippet.get('title', ''),
            description=snippet.get('description', ''),
            channel_id=snippet.get('channelId', ''),
            published_at=snippet.get('publishedAt', ''),
            channel_title=snippet.get('channelTitle', ''),
            view_count=statistics.get('viewCount'),
            duration=content_details.get('duration'),
            thumbnail=thumbnail,
        )

    def get_videos(self, video_ids: List[str]) -> List[CatalogItem]:
        """
        Fetch details for up to 50 videos in one call.

        Raises:
            requests.HTTPError: On non-2xx responses
        """
        if not video_ids:
            return []
        data = self._get('videos', {
            'part': 'snippet,statistics,contentDetails',
            'id': ','.join(video_ids),
        })
        return [self._to_item(video) for video in data.get('items', [])]

    def get_item_details(self, video_id: str) -> Optional[CatalogItem]:
        """
        Fetch a single video.

        Args:
            video_id: Video ID

        Returns:
            CatalogItem, or None when not found or the API call failed
        """
        try:
            items = self.get_videos([video_id])
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching video details for {video_id}: {e}")
            return None

        if not items:
            logger.warning(f"Video {video_id} not found in catalog")
            return None

        return items[0]

    def get_all_items_for_channel(self, channel_id: str, max_items: int = 100) -> List[CatalogItem]:
        """
        Fetch a channel's uploads, newest first.

        Args:
            channel_id: Channel ID
            max_items: Maximum number of videos returned

        Returns:
            Videos fetched before the end of the listing, the cap, or the first failure
        """
        all_items: List[CatalogItem] = []
        page_token = ''

        logger.info(f"Fetching videos for channel {channel_id} (max: {max_items})...")

        try:
            while True:
                params = {
                    'part': 'snippet',
                    'channelId': channel_id,
                    'type': 'video',
                    'maxResults': 50,
                    'order': 'date',
                }
                if page_token:
                    params['pageToken'] = page_token

                result = self._get('search', params)
                search_items = result.get('items', [])
                if not search_items:
                    break

                video_ids = [item['id']['videoId'] for item in search_items if item.get('id', {}).get('videoId')]
                all_items.extend(self.get_videos(video_ids))
                logger.info(f"  Loaded {len(all_items)} videos...")

                page_token = result.get('nextPageToken', '')
                if not page_token or len(all_items) >= max_items:
                    break

                time.sleep(0.1)  # Rate limiting

        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Catalog error while listing channel {channel_id}: {e}")

        all_items = all_items[:max_items]
        logger.info(f"✓ Loaded {len(all_items)} total videos for channel {channel_id}")
        return all_items
