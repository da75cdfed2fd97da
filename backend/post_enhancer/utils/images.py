"""Image re-encoding and media filename helpers."""

from __future__ import annotations

import io
import logging
import re

from PIL import Image, UnidentifiedImageError

from ..exceptions import ImageProcessingError

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 60


def encode_jpeg(raw: bytes, quality: int = 85) -> bytes:
    """Re-encode arbitrary image bytes as a baseline JPEG.

    Transparent images are flattened onto a white background since JPEG has
    no alpha channel.
    """

    try:
        with Image.open(io.BytesIO(raw)) as original:
            original.load()
            if original.mode in ("RGBA", "LA", "P"):
                rgba = original.convert("RGBA")
                image = Image.new("RGB", rgba.size, (255, 255, 255))
                image.paste(rgba, mask=rgba.split()[3])
            elif original.mode != "RGB":
                image = original.convert("RGB")
            else:
                image = original.copy()
    except (UnidentifiedImageError, OSError) as exc:
        logger.error("Could not decode image (%d bytes): %s", len(raw), exc)
        raise ImageProcessingError(f"Could not decode image: {exc}") from exc

    out = io.BytesIO()
    image.save(out, format="JPEG", quality=quality, optimize=True)
    encoded = out.getvalue()
    logger.debug("Re-encoded image %d -> %d bytes (quality=%d)", len(raw), len(encoded), quality)
    return encoded


def media_filename(title: str, suffix: str = "-featured.jpg") -> str:
    """Build an upload filename from a post title.

    >>> media_filename("Why Spray Foam? A 2024 Guide!")
    'why-spray-foam-a-2024-guide-featured.jpg'
    """

    slug = _NON_ALNUM.sub("-", title.lower()).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-") or "image"
    return f"{slug}{suffix}"
