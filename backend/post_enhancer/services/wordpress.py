"""WordPress REST API calls used by the enhancement pipeline."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..exceptions import UploadError
from ..utils.http import response_json

logger = logging.getLogger(__name__)


def wp_auth_header(user: str, app_password: str) -> Dict[str, str]:
    """HTTP Basic header for a WordPress application password."""
    token = base64.b64encode(f"{user}:{app_password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


class WordPressClient:
    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._api = f"{settings.WP_URL}/wp-json/wp/v2"
        self._auth = wp_auth_header(settings.WP_USER, settings.WP_APP_PASSWORD)

    async def upload_media(self, content: bytes, filename: str, content_type: str = "image/jpeg") -> int:
        """Upload raw bytes to the media library and return the attachment id."""

        logger.info("Uploading image to WordPress: %s (%d bytes)", filename, len(content))
        headers = {
            **self._auth,
            "Content-Type": content_type,
            "Content-Disposition": f'attachment; filename="{filename}"',
        }
        try:
            resp = await self._client.post(f"{self._api}/media", content=content, headers=headers)
            resp.raise_for_status()
            data = response_json(resp)
        except httpx.HTTPStatusError as e:
            logger.error("WordPress media upload HTTP %s: %s", e.response.status_code, e.response.text[:500])
            raise UploadError(f"WordPress media upload failed: HTTP {e.response.status_code}") from e
        except ValueError as e:
            raise UploadError(f"WordPress media upload failed: {e}") from e

        media_id = data.get("id") if isinstance(data, dict) else None
        if not media_id:
            raise UploadError("WordPress media upload failed")
        return int(media_id)

    async def set_media_metadata(self, media_id: int, alt_text: str, caption: str, description: str) -> None:
        resp = await self._client.post(
            f"{self._api}/media/{media_id}",
            json={"alt_text": alt_text, "caption": caption, "description": description},
            headers=self._auth,
        )
        resp.raise_for_status()
        logger.info("Image uploaded, media ID: %s", media_id)

    async def get_post_content(self, post_id: int) -> str:
        """Return the raw (editable) HTML body of a post."""

        resp = await self._client.get(
            f"{self._api}/posts/{post_id}", params={"context": "edit"}, headers=self._auth
        )
        resp.raise_for_status()
        data = response_json(resp)
        content = data.get("content") if isinstance(data, dict) else None
        if isinstance(content, dict):
            return content.get("raw") or ""
        return ""

    async def update_post(
        self,
        post_id: int,
        content: str,
        featured_media: Optional[int] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        logger.info("Updating WordPress post: %s", post_id)
        payload: Dict[str, Any] = {"content": content}
        if featured_media:
            payload["featured_media"] = int(featured_media)
        if meta:
            payload["meta"] = meta
        resp = await self._client.post(f"{self._api}/posts/{post_id}", json=payload, headers=self._auth)
        resp.raise_for_status()
        logger.info("WordPress post %s updated", post_id)
