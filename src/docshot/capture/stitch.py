"""Column-by-column composition of captured tiles."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from PIL import Image

from docshot.capture.tiles import TileMap
from docshot.shared import imaging
from docshot.shared.errors import ImageToolError

logger = logging.getLogger(__name__)


def _build_column(tile_paths: list[Path]) -> Image.Image:
    tiles = [imaging.open_image(path) for path in tile_paths]
    if len(tiles) == 1:
        return tiles[0]
    return imaging.append_vertical(tiles)


def _merge_column(composite: Image.Image, column: Image.Image, column_path: Path) -> Image.Image:
    imaging.write(column, column_path)
    return imaging.append_horizontal(composite, imaging.open_image(column_path))


class ColumnStitcher:
    """Joins tiles top to bottom into columns, then columns left to right.

    Columns after the first are materialized in ``work_dir`` before being
    merged. The raw composite is written to the output path once.
    """

    def __init__(self, work_dir: Path) -> None:
        self.work_dir = Path(work_dir)

    async def stitch(self, tile_map: TileMap, output_path: Path) -> tuple[int, int]:
        columns = tile_map.columns()
        if not columns:
            raise ImageToolError("No tiles to stitch")

        composite: Image.Image | None = None
        for x, tile_paths in enumerate(columns):
            column = await asyncio.to_thread(_build_column, tile_paths)
            if composite is None:
                composite = column
            else:
                column_path = self.work_dir / f"column-{x}.png"
                composite = await asyncio.to_thread(_merge_column, composite, column, column_path)
            logger.debug("Column %d: %d tile(s), composite now %dx%d", x, len(tile_paths), *composite.size)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(imaging.write, composite, output_path)
        logger.info("Stitched %d column(s) into %dx%d", len(columns), *composite.size)
        return composite.size
