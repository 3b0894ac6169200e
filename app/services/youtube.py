"""
YouTube Data API v3 client — channel search + batched channel stats.

Every failure (transport, non-200, API error object, malformed body) is raised
as UpstreamError so callers can isolate it to the current query.
"""
import logging
from typing import Any, Dict, Iterable, List

import requests

from app.config import (
    GOOGLE_API_KEY, YOUTUBE_API_URL, YOUTUBE_TIMEOUT,
    SEARCH_MAX_RESULTS, STATS_BATCH_SIZE,
)
from app.errors import UpstreamError

logger = logging.getLogger('services.youtube')


def chunked(items, size):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class YouTubeClient:
    """
    Thin wrapper over the two endpoints the ingestion pipeline needs.

    Usage:
        client = YouTubeClient(api_key)
        ids = client.search('budget travel vlog')
        stats = client.fetch_stats(ids)   # {channel_id: raw channel}
    """

    def __init__(self, api_key=None, base_url=None, timeout=None, session=None):
        self.api_key = api_key if api_key is not None else GOOGLE_API_KEY
        self.base_url = (base_url or YOUTUBE_API_URL).rstrip('/')
        self.timeout = timeout or YOUTUBE_TIMEOUT
        self.http = session or requests

    # ── Public API ────────────────────────────────────────────────────

    def search(self, query: str) -> List[str]:
        """Return up to 50 channel IDs matching the query, in API order."""
        data = self._get('search', {
            'part': 'snippet',
            'type': 'channel',
            'maxResults': SEARCH_MAX_RESULTS,
            'q': query,
        })

        items = data.get('items') or []
        if not isinstance(items, list):
            raise UpstreamError("Search response 'items' is not a list")

        channel_ids = []
        for item in items:
            if not isinstance(item, dict):
                continue
            channel_id = (item.get('snippet') or {}).get('channelId') or (item.get('id') or {}).get('channelId')
            if channel_id and channel_id not in channel_ids:
                channel_ids.append(channel_id)

        logger.info("Search '%s' returned %d channels", query, len(channel_ids))
        return channel_ids[:SEARCH_MAX_RESULTS]

    def fetch_stats(self, channel_ids: Iterable[str], max_batch: int = STATS_BATCH_SIZE) -> Dict[str, Dict[str, Any]]:
        """
        Fetch snippet + statistics for the given channels.

        Returns {channel_id: raw channel record}. Channels the API does not
        return (deleted, suspended) are simply absent from the mapping.
        """
        ids = list(dict.fromkeys(cid for cid in channel_ids if cid))
        if not ids:
            return {}

        stats = {}
        for batch in chunked(ids, max_batch):
            data = self._get('channels', {
                'part': 'snippet,statistics',
                'id': ','.join(batch),
            })
            items = data.get('items')
            if not isinstance(items, list):
                raise UpstreamError("Channels response has no 'items' list")
            for item in items:
                if isinstance(item, dict) and item.get('id'):
                    stats[item['id']] = item

        logger.info("Fetched stats for %d/%d channels", len(stats), len(ids))
        return stats

    # ── HTTP ──────────────────────────────────────────────────────────

    def _get(self, endpoint, params):
        if not self.api_key:
            raise UpstreamError("GOOGLE_API_KEY is not configured")

        url = f"{self.base_url}/{endpoint}"
        try:
            response = self.http.get(url, params={**params, 'key': self.api_key}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            # transport errors echo the URL, query string included
            detail = str(e).replace(self.api_key, '***')
            logger.error("YouTube %s request failed: %s", endpoint, detail)
            raise UpstreamError(f"YouTube {endpoint} request failed: {detail}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code != 200 or (isinstance(data, dict) and data.get('error')):
            message = _error_message(data) or f"HTTP {response.status_code}"
            logger.error("YouTube %s API error (%d): %s", endpoint, response.status_code, message)
            raise UpstreamError(f"YouTube API error: {message}", upstream_status=response.status_code)

        if not isinstance(data, dict):
            raise UpstreamError(f"YouTube {endpoint} returned a malformed payload")
        return data


def _error_message(data):
    """Pull the human-readable message out of a Google API error body."""
    if not isinstance(data, dict):
        return ''
    err = data.get('error')
    if isinstance(err, dict):
        return err.get('message', '')
    return str(err) if err else ''
