"""YouTube Data API search and chapter video enrichment."""

import logging

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from study_companion.errors import ConfigurationError, VideoSearchError

logger = logging.getLogger('study_companion.videos')

YOUTUBE_SEARCH_URL = 'https://www.googleapis.com/youtube/v3/search'
YOUTUBE_WATCH_URL = 'https://www.youtube.com/watch?v={video_id}'
SUGGESTION_COUNT = 2


class YouTubeClient:
    def __init__(self, api_key, timeout_seconds=10.0, max_attempts=3, retry_wait_seconds=0.5, session=None):
        self.api_key = (api_key or '').strip()
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, int(max_attempts or 1))
        self.retry_wait_seconds = retry_wait_seconds
        self.session = session or requests.Session()

    @property
    def configured(self):
        return bool(self.api_key)

    def require_configured(self):
        if not self.configured:
            raise ConfigurationError('YouTube API key not set')

    def _get(self, params):
        response = self.session.get(YOUTUBE_SEARCH_URL, params=params, timeout=self.timeout_seconds)
        response.raise_for_status()
        return response.json()

    def search(self, query, max_results=1, order='relevance'):
        """Return the raw ``items`` list for one search, in ranking order."""
        self.require_configured()
        params = {
            'part': 'snippet',
            'q': query,
            'type': 'video',
            'maxResults': max_results,
            'order': order,
            'key': self.api_key,
        }
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=4),
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
            reraise=True,
        )
        try:
            data = retrying(self._get, params)
        except (requests.RequestException, ValueError) as exc:
            logger.info(f"YouTube search for '{query}' failed: {exc}")
            raise VideoSearchError('Video search failed') from exc
        if not isinstance(data, dict):
            return []
        items = data.get('items')
        return items if isinstance(items, list) else []


def coerce_query(entry):
    """Accept either a plain string or a {query, timestamp} mapping."""
    if isinstance(entry, str):
        return entry.strip(), 0
    if isinstance(entry, dict):
        query = str(entry.get('query', '') or '').strip()
        raw_timestamp = entry.get('timestamp', entry.get('timestampSeconds', 0))
        try:
            timestamp = int(float(raw_timestamp or 0))
        except (TypeError, ValueError, OverflowError):
            timestamp = 0
        return query, max(0, timestamp)
    return '', 0


def video_from_search_item(item, timestamp=0):
    if not isinstance(item, dict):
        return None
    ident = item.get('id')
    video_id = ident.get('videoId') if isinstance(ident, dict) else None
    if not video_id:
        return None
    snippet = item.get('snippet') if isinstance(item.get('snippet'), dict) else {}
    url = YOUTUBE_WATCH_URL.format(video_id=video_id)
    if timestamp > 0:
        url = f"{url}&t={timestamp}s"
    thumbnails = snippet.get('thumbnails') if isinstance(snippet.get('thumbnails'), dict) else {}
    default_thumbnail = thumbnails.get('default') if isinstance(thumbnails.get('default'), dict) else {}
    thumbnail = default_thumbnail.get('url')
    return {
        'title': str(snippet.get('title', '') or ''),
        'url': url,
        'thumbnail': thumbnail or None,
        'timestamp': timestamp,
    }


def enrich_chapter(chapter, video_client):
    videos = []
    queries = chapter.get('youtubeQueries')
    for entry in queries if isinstance(queries, list) else []:
        query, timestamp = coerce_query(entry)
        if not query:
            continue
        try:
            items = video_client.search(query, max_results=1)
        except VideoSearchError as exc:
            logger.info(f"Skipping video query '{query}': {exc}")
            continue
        video = video_from_search_item(items[0], timestamp) if items else None
        if video is not None:
            videos.append(video)
    chapter['youtubeVideos'] = videos
    return chapter


def enrich_chapters(chapters, video_client):
    """Attach at most one video per query to every chapter, in query order.

    Per-query failures are skipped. A missing API key raises before any
    chapter is touched.
    """
    video_client.require_configured()
    for chapter in chapters:
        if isinstance(chapter, dict):
            enrich_chapter(chapter, video_client)
    return chapters


def suggest_videos(subtopic_name, video_client):
    items = video_client.search(subtopic_name, max_results=SUGGESTION_COUNT, order='viewCount')
    suggestions = []
    for item in items:
        video = video_from_search_item(item)
        if video is not None:
            suggestions.append({'title': video['title'], 'url': video['url']})
    return suggestions
