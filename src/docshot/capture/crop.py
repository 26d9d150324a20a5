"""Trims the stitched composite to the document bounds."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from docshot.schemas.page import PageInfo
from docshot.shared import imaging

logger = logging.getLogger(__name__)


def _crop_in_place(path: Path, width: int, height: int) -> tuple[int, int]:
    image = imaging.open_image(path)
    # A single no-scroll tile can be smaller than the document; never pad it.
    width = min(width, image.width)
    height = min(height, image.height)
    if image.size != (width, height):
        image = imaging.crop(image, width, height, 0, 0)
    imaging.write(image, path)
    return image.size


class FinalCropper:
    """Removes the overscan the tile grid leaves on the right and bottom."""

    async def crop(self, output_path: Path, page_info: PageInfo) -> tuple[int, int]:
        size = await asyncio.to_thread(
            _crop_in_place, Path(output_path), page_info.document_width, page_info.document_height
        )
        logger.info("Cropped output to %dx%d", *size)
        return size
