"""JPEG re-encoding with a width cap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from PIL import Image

logger = logging.getLogger(__name__)

MAX_WIDTH = 800
SUPPORTED_FORMATS = frozenset({"JPEG", "PNG", "GIF"})


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "RGB":
        return img
    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        # JPEG has no alpha; flatten onto white.
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background
    return img.convert("RGB")


def compress_image(
    source: str | Path | BinaryIO,
    destination: str | Path,
    quality: int,
    *,
    max_width: int = MAX_WIDTH,
) -> bool:
    """Re-encode ``source`` as an RGB JPEG at ``quality`` into ``destination``.

    Images wider than ``max_width`` are downscaled keeping the aspect ratio.
    Returns False without writing anything when the source is not JPEG, PNG or
    GIF. Undecodable input raises ``PIL.UnidentifiedImageError``.
    """
    if not 0 <= quality <= 100:
        raise ValueError(f"quality must be within 0..100, got {quality}")

    destination = Path(destination)
    with Image.open(source) as img:
        if img.format not in SUPPORTED_FORMATS:
            logger.info("image_compress.unsupported format=%s", img.format)
            return False

        # Decode fully so the source may be overwritten in place.
        img.load()
        rgb = _to_rgb(img)
        try:
            width, height = rgb.size
            if width > max_width:
                new_height = max(1, int((max_width / width) * height))
                resized = rgb.resize((max_width, new_height), Image.Resampling.LANCZOS)
                if rgb is not img:
                    rgb.close()
                rgb = resized

            destination.parent.mkdir(parents=True, exist_ok=True)
            rgb.save(destination, "JPEG", quality=quality)
        finally:
            if rgb is not img:
                rgb.close()

    logger.debug("image_compress.done destination=%s quality=%s", destination, quality)
    return True
