"""
Creator normalizer — raw YouTube channel record → canonical CreatorRecord.

Pure functions, no I/O. Malformed numeric fields become 0 rather than errors.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.config import BIO_MAX_LENGTH, PLATFORM


@dataclass
class CreatorRecord:
    platform_user_id: str
    handle: str
    display_name: str
    profile_image_url: Optional[str] = None
    bio: Optional[str] = None
    followers: int = 0
    total_posts: int = 0
    total_views: int = 0
    avg_views: int = 0
    niche: List[str] = field(default_factory=list)
    platform: str = PLATFORM


def parse_count(value) -> int:
    """int() that never raises; YouTube sends counts as strings."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0


def average_views(total_views: int, total_posts: int) -> int:
    """Views per post, rounded half up. The denominator is floored at 1."""
    return int(math.floor(total_views / max(total_posts, 1) + 0.5))


def normalize_stats(statistics: Optional[Dict[str, Any]]) -> Tuple[int, int, int]:
    """Return (followers, total_posts, avg_views) from a statistics block."""
    statistics = statistics or {}
    followers = parse_count(statistics.get('subscriberCount'))
    total_posts = parse_count(statistics.get('videoCount'))
    total_views = parse_count(statistics.get('viewCount'))
    return followers, total_posts, average_views(total_views, total_posts)


def normalize_channel(raw: Dict[str, Any], niche: Optional[List[str]] = None) -> CreatorRecord:
    """Map a channels.list item to a CreatorRecord."""
    channel_id = raw.get('id') or ''
    snippet = raw.get('snippet') or {}
    statistics = raw.get('statistics') or {}

    followers, total_posts, avg_views = normalize_stats(statistics)

    custom_url = (snippet.get('customUrl') or '').strip()
    handle = custom_url.lstrip('@') or channel_id

    thumbnails = snippet.get('thumbnails') or {}
    image = (thumbnails.get('medium') or {}).get('url') or (thumbnails.get('default') or {}).get('url')

    description = snippet.get('description') or ''

    return CreatorRecord(
        platform_user_id=channel_id,
        handle=handle,
        display_name=snippet.get('title') or 'Unknown',
        profile_image_url=image,
        bio=description[:BIO_MAX_LENGTH] or None,
        followers=followers,
        total_posts=total_posts,
        total_views=parse_count(statistics.get('viewCount')),
        avg_views=avg_views,
        niche=[niche] if isinstance(niche, str) else list(niche or []),
    )


def normalize_import_payload(channel: Dict[str, Any], niche: Optional[List[str]] = None) -> CreatorRecord:
    """
    Map a flattened channel (as returned by the admin search endpoint) back
    into a CreatorRecord for manual import.
    """
    raw = {
        'id': channel.get('id'),
        'snippet': {
            'title': channel.get('title'),
            'description': channel.get('description'),
            'customUrl': channel.get('customUrl'),
            'thumbnails': {'medium': {'url': channel.get('thumbnail')}},
        },
        'statistics': {
            'subscriberCount': channel.get('subscriberCount'),
            'videoCount': channel.get('videoCount'),
            'viewCount': channel.get('viewCount'),
        },
    }
    return normalize_channel(raw, niche=niche)


def flatten_channel(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Shape returned to the admin search UI."""
    record = normalize_channel(raw)
    snippet = raw.get('snippet') or {}
    thumbnails = snippet.get('thumbnails') or {}
    return {
        'id': record.platform_user_id,
        'title': record.display_name,
        'description': snippet.get('description') or '',
        'thumbnail': (thumbnails.get('medium') or {}).get('url') or (thumbnails.get('default') or {}).get('url'),
        'subscriberCount': record.followers,
        'videoCount': record.total_posts,
        'viewCount': record.total_views,
        'customUrl': snippet.get('customUrl'),
    }
