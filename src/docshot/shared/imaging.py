"""Pillow-backed raster primitives used to build the composite.

Every function raises ``ImageToolError`` instead of Pillow's own exceptions
so a failed step aborts the run with one error kind.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from docshot.shared.errors import ImageToolError

logger = logging.getLogger(__name__)

_PIL_ERRORS = (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError)

# Image.MAX_IMAGE_PIXELS is process-wide; hold this while reading or changing it.
_pixel_limit_lock = threading.Lock()


@contextmanager
def _pixel_limit(limit: int | None) -> Iterator[None]:
    with _pixel_limit_lock:
        saved = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = limit
        try:
            yield
        finally:
            Image.MAX_IMAGE_PIXELS = saved


def decode(data: bytes) -> Image.Image:
    """Decode encoded image bytes (PNG, JPEG, ...) into a loaded image."""
    try:
        with _pixel_limit_lock, Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.copy()
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Could not decode image ({len(data)} bytes): {exc}") from exc


def open_image(path: str | Path) -> Image.Image:
    """Read an image file fully into memory so the file can be rewritten.

    Only for files this package wrote itself: a stitched page can be far
    taller than Pillow's decompression-bomb limit, so the limit is lifted.
    Bytes from the viewport go through ``decode``, which keeps it.
    """
    try:
        with _pixel_limit(None), Image.open(path) as img:
            img.load()
            return img.copy()
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Could not read image {path}: {exc}") from exc


def resize_percent(image: Image.Image, pct_w: float, pct_h: float) -> Image.Image:
    """Scale ``image`` to ``pct_w`` / ``pct_h`` percent of its size."""
    width = max(1, round(image.width * pct_w / 100))
    height = max(1, round(image.height * pct_h / 100))
    try:
        return image.resize((width, height), Image.Resampling.LANCZOS)
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Resize to {width}x{height} failed: {exc}") from exc


def crop(image: Image.Image, width: int, height: int, x: int = 0, y: int = 0) -> Image.Image:
    """Cut a ``width`` x ``height`` region whose top-left corner is ``(x, y)``.

    Areas outside the source come back transparent/black.
    """
    if width <= 0 or height <= 0:
        raise ImageToolError(f"Invalid crop size {width}x{height}")
    try:
        return image.crop((x, y, x + width, y + height))
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Crop {width}x{height}+{x}+{y} failed: {exc}") from exc


def append_vertical(images: Sequence[Image.Image]) -> Image.Image:
    """Stack ``images`` top to bottom, left-aligned."""
    if not images:
        raise ImageToolError("Nothing to append")
    width = max(img.width for img in images)
    height = sum(img.height for img in images)
    try:
        out = Image.new(images[0].mode, (width, height))
        offset = 0
        for img in images:
            out.paste(img, (0, offset))
            offset += img.height
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Vertical append of {len(images)} images failed: {exc}") from exc
    return out


def append_horizontal(base: Image.Image, image: Image.Image) -> Image.Image:
    """Attach ``image`` to the right edge of ``base``, top-aligned."""
    try:
        out = Image.new(base.mode, (base.width + image.width, max(base.height, image.height)))
        out.paste(base, (0, 0))
        out.paste(image, (base.width, 0))
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Horizontal append failed: {exc}") from exc
    return out


def write(image: Image.Image, path: str | Path) -> None:
    """Write ``image`` to ``path``; the format follows the file extension."""
    try:
        image.save(path)
    except _PIL_ERRORS as exc:
        raise ImageToolError(f"Could not write {path}: {exc}") from exc
    logger.debug("Wrote %dx%d image to %s", image.width, image.height, path)
