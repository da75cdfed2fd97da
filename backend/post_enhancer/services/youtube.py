"""Search a YouTube channel for a video matching a topic."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import Settings
from ..models.schemas import Video
from ..utils.http import response_json

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"


class YouTubeClient:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._api_key = settings.YOUTUBE_API_KEY
        self._channel_id = settings.YT_CHANNEL_ID

    @property
    def enabled(self) -> bool:
        return bool(self._api_key and self._channel_id)

    async def search(self, query: str) -> Optional[Video]:
        """Return the most relevant channel video for ``query``, if any.

        Errors propagate; callers decide whether a missing video matters.
        """

        if not self.enabled:
            logger.debug("YouTube search skipped: API key or channel id not configured")
            return None

        resp = await self._client.get(
            SEARCH_URL,
            params={
                "key": self._api_key,
                "channelId": self._channel_id,
                "q": query,
                "type": "video",
                "part": "snippet",
                "maxResults": 1,
                "order": "relevance",
            },
        )
        resp.raise_for_status()
        body = response_json(resp)
        if not isinstance(body, dict):
            raise ValueError("YouTube search returned a non-object body")
        items = body.get("items") or []
        if not isinstance(items, list):
            raise ValueError("YouTube search returned non-list items")
        if not items:
            logger.info("No YouTube video found for %r", query)
            return None

        item = items[0]
        if not isinstance(item, dict):
            logger.warning("Unexpected YouTube search item: %r", item)
            return None
        ids = item.get("id")
        snippet = item.get("snippet") or {}
        if not isinstance(ids, dict) or not isinstance(snippet, dict):
            logger.warning("Unexpected YouTube search item: %r", item)
            return None
        video_id = ids.get("videoId")
        if not video_id or not isinstance(video_id, str):
            return None
        title = snippet.get("title") or ""
        return Video(video_id=video_id, title=str(title))
