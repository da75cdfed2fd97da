"""Post enhancement pipeline.

Given a freshly published post, :class:`PostEnhancer`

1. generates a featured image and looks up a related video concurrently;
2. downloads the image, re-encodes it as JPEG and uploads it to WordPress;
3. appends the video embed, sets the featured image and SEO/geo meta;
4. reports the outcome to Telegram.

The post is already live when this runs.  A failing step aborts the rest of
the pipeline but never touches what was published; the failure is logged and
reported instead of raised.
"""

from __future__ import annotations

import asyncio
import html
import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from fastapi.concurrency import run_in_threadpool

from ..config import Settings
from ..models.schemas import EnhancementReport, EnhanceRequest, Video
from ..utils.images import encode_jpeg, media_filename
from .job_waiter import JobWaiter
from .notifier import TelegramNotifier
from .wordpress import WordPressClient
from .youtube import YouTubeClient

logger = logging.getLogger(__name__)


def video_embed_html(video: Video) -> str:
    title = html.escape(video.title, quote=True)
    return (
        '\n\n<div style="margin:30px 0;">'
        f'<iframe width="560" height="315" src="{video.embed_url}" title="{title}" '
        'frameborder="0" allowfullscreen style="max-width:100%;"></iframe>'
        f"<p><em>Watch: {title}</em></p></div>"
    )


class PostEnhancer:
    def __init__(
        self,
        job_waiter: JobWaiter,
        wordpress: WordPressClient,
        youtube: YouTubeClient,
        notifier: TelegramNotifier,
        http: httpx.AsyncClient,
        settings: Settings,
    ) -> None:
        self._job_waiter = job_waiter
        self._wordpress = wordpress
        self._youtube = youtube
        self._notifier = notifier
        self._http = http
        self._settings = settings

    async def enhance(self, request: EnhanceRequest) -> EnhancementReport:
        """Run the whole pipeline for one post. Never raises."""

        report = EnhancementReport(post_id=request.post_id, title=request.title)
        logger.info("=== ENHANCING post %s: %s ===", request.post_id, request.title)

        try:
            await self._notifier.send(f'🎨 Enhancing: "{request.title}"\n⏳ Getting image + YouTube...')

            image_url, video = await asyncio.gather(
                self._job_waiter.submit(request.image_prompt or self._settings.DEFAULT_IMAGE_PROMPT),
                self._find_video(request.topic or request.title),
            )
            report.video = video

            jpeg, filename = await self._download_and_process(image_url, request.title)
            report.media_id = await self._upload_featured_image(jpeg, filename, request.title)

            await self._update_post(request, report.media_id, video)
        except Exception as e:
            report.error = str(e) or type(e).__name__
            logger.error("Enhancement of post %s failed: %s", request.post_id, report.error, exc_info=True)
            await self._notifier.send(
                f'❌ Enhancement failed for "{request.title}"\n'
                f"Error: {report.error}\n\n"
                "Post is live but without image/YouTube."
            )
            return report

        await self._notifier.send(self._success_message(request, video))
        logger.info("=== ENHANCEMENT COMPLETE for post %s ===", request.post_id)
        return report

    async def _find_video(self, query: str) -> Optional[Video]:
        # A missing video never blocks the rest of the pipeline.
        try:
            return await self._youtube.search(query)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("YouTube error: %s", e)
            return None
        except Exception:
            logger.exception("Unexpected YouTube lookup failure for %r", query)
            return None

    async def _download_and_process(self, image_url: str, title: str) -> Tuple[bytes, str]:
        logger.info("Downloading image: %s", image_url)
        resp = await self._http.get(image_url)
        resp.raise_for_status()
        jpeg = await run_in_threadpool(encode_jpeg, resp.content, self._settings.JPEG_QUALITY)
        return jpeg, media_filename(title, self._settings.FILENAME_SUFFIX)

    async def _upload_featured_image(self, jpeg: bytes, filename: str, title: str) -> int:
        alt_text = self._branded(title, " - ")
        prefix = self._settings.MEDIA_DESCRIPTION_PREFIX
        media_id = await self._wordpress.upload_media(jpeg, filename)
        await self._wordpress.set_media_metadata(
            media_id,
            alt_text=alt_text,
            caption=alt_text,
            description=f"{prefix} {alt_text}" if prefix else alt_text,
        )
        return media_id

    async def _update_post(self, request: EnhanceRequest, media_id: int, video: Optional[Video]) -> None:
        content = await self._wordpress.get_post_content(request.post_id)
        if video:
            content += video_embed_html(video)
        await self._wordpress.update_post(
            request.post_id,
            content=content,
            featured_media=media_id,
            meta=self._seo_meta(request),
        )

    def _seo_meta(self, request: EnhanceRequest) -> Dict[str, Any]:
        s = self._settings
        meta: Dict[str, Any] = {
            "rank_math_focus_keyword": request.focus_keyword,
            "rank_math_description": request.meta_description,
            "rank_math_title": self._branded(request.title, " | "),
            "geo_latitude": s.GEO_LATITUDE,
            "geo_longitude": s.GEO_LONGITUDE,
            "geo_address": s.GEO_ADDRESS,
        }
        return {k: v for k, v in meta.items() if v}

    def _success_message(self, request: EnhanceRequest, video: Optional[Video]) -> str:
        lines = [
            "✅ Post Enhanced!",
            "",
            f"📄 {request.title}",
            f"🔗 {request.post_url}",
            "",
            "🖼️ Featured image: uploaded",
            f'🎬 YouTube: "{video.title}" embedded' if video else "🎬 YouTube: no video found",
            "📊 RankMath: updated",
        ]
        if self._settings.GEO_ADDRESS:
            lines.append(f"📍 Geo: {self._settings.GEO_ADDRESS}")
        lines += ["", f"🕐 {self._now():%Y-%m-%d %H:%M %Z}"]
        return "\n".join(lines)

    def _branded(self, text: str, separator: str) -> str:
        site = self._settings.SITE_NAME
        return f"{text}{separator}{site}" if site else text

    def _now(self) -> datetime:
        try:
            tz: tzinfo = ZoneInfo(self._settings.NOTIFY_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown NOTIFY_TIMEZONE %r, using UTC", self._settings.NOTIFY_TIMEZONE)
            tz = timezone.utc
        return datetime.now(tz)
