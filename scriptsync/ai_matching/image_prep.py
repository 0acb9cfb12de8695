"""Slide image preparation for vision requests.

Rendered slides are often several hundred KB as PNG; downsizing to 800x600
JPEG keeps vision requests under provider payload limits.
"""

from __future__ import annotations

import base64
import io

from PIL import Image, UnidentifiedImageError

from scriptsync.config import get_matching_config
from scriptsync.log import get_logger

logger = get_logger(__name__)


class ImagePrepError(ValueError):
    """Raised when slide bytes cannot be decoded as an image."""


def prepare_slide_image(
    data: bytes,
    *,
    max_width: int | None = None,
    max_height: int | None = None,
    quality: int | None = None,
) -> str:
    """Return base64 JPEG of *data*, scaled down to fit the configured box."""
    cfg = get_matching_config().get("image", {})
    max_width = max_width or cfg.get("max_width", 800)
    max_height = max_height or cfg.get("max_height", 600)
    quality = quality or cfg.get("jpeg_quality", 70)

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImagePrepError(f"unreadable slide image: {exc}") from exc

    if img.mode != "RGB":
        img = img.convert("RGB")
    original = img.size
    img.thumbnail((max_width, max_height))

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")

    logger.debug(
        "slide_image_prepared",
        original_size=original,
        size=img.size,
        input_kb=round(len(data) / 1024),
        output_kb=round(len(encoded) / 1024),
    )
    return encoded
