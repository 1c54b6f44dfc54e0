from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from PIL import Image

from profilehub.services.images.errors import ImageOptimizationError

logger = logging.getLogger(__name__)


class ImageOptimizer(Protocol):
    def optimize(self, path: Path) -> None:
        """Rewrite the JPEG at ``path`` in place."""


class PillowJpegOptimizer:
    """Re-save a JPEG without re-quantizing it.

    ``quality="keep"`` reuses the source quantization tables, so the pass only
    recomputes Huffman tables, switches to progressive encoding and drops
    EXIF/ICC metadata.
    """

    def __init__(self, *, progressive: bool = True) -> None:
        self._progressive = progressive

    def optimize(self, path: Path) -> None:
        path = Path(path)
        before = path.stat().st_size
        try:
            with Image.open(path) as img:
                if img.format != "JPEG":
                    raise ImageOptimizationError(f"expected a JPEG file, got {img.format}")
                img.load()
                img.save(
                    path,
                    "JPEG",
                    quality="keep",
                    optimize=True,
                    progressive=self._progressive,
                )
        except ImageOptimizationError:
            raise
        except (OSError, ValueError) as exc:
            raise ImageOptimizationError(f"could not optimize {path.name}: {exc}") from exc
        logger.debug("image_optimize.done path=%s before=%s after=%s", path.name, before, path.stat().st_size)


class NoopOptimizer:
    def optimize(self, path: Path) -> None:
        return None
