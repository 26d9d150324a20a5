"""Sequential viewport capture over the tile grid."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from docshot.capture.scroll import GridPosition, ScrollCoordinator
from docshot.schemas.page import PageInfo
from docshot.shared import imaging
from docshot.shared.viewport import ViewportController

logger = logging.getLogger(__name__)


class TileMap:
    """Tile file paths keyed by grid position, in capture order.

    Positions must arrive column-major and row-ascending: ``(0, 0)`` first,
    then either the next row of the same column or row 0 of the next column.
    The stitcher depends on this order, so anything else is rejected.
    """

    def __init__(self) -> None:
        self._columns: list[list[Path]] = []
        self._consumed = False

    def add(self, position: GridPosition, path: Path) -> None:
        if self._consumed:
            raise RuntimeError("TileMap already consumed")
        expected = self._next_positions()
        if (position.x, position.y) not in expected:
            raise ValueError(
                f"Tile ({position.x}, {position.y}) out of order; expected one of {sorted(expected)}"
            )
        if position.y == 0:
            self._columns.append([])
        self._columns[position.x].append(path)

    def _next_positions(self) -> set[tuple[int, int]]:
        if not self._columns:
            return {(0, 0)}
        x = len(self._columns) - 1
        return {(x, len(self._columns[x])), (x + 1, 0)}

    def positions(self) -> list[tuple[int, int]]:
        """Grid positions in insertion order."""
        return [(x, y) for x, column in enumerate(self._columns) for y in range(len(column))]

    def __len__(self) -> int:
        return sum(len(column) for column in self._columns)

    def columns(self) -> list[list[Path]]:
        """Hand over the per-column tile lists, ascending x then y.

        May be called once; the map is empty afterwards.
        """
        if self._consumed:
            raise RuntimeError("TileMap already consumed")
        self._consumed = True
        columns, self._columns = self._columns, []
        return columns


def _normalize_tile(raw: bytes, page_info: PageInfo, path: Path) -> None:
    image = imaging.decode(raw)
    if page_info.device_pixel_ratio > 1:
        percent = 100 / page_info.device_pixel_ratio
        image = imaging.resize_percent(image, percent, percent)
    image = imaging.crop(image, page_info.screen_width, page_info.screen_height, 0, 0)
    imaging.write(image, path)


class TileCaptureLoop:
    """Captures every grid cell, one at a time, into ``tile_dir``.

    Each capture has to see the scroll committed by the previous step, so
    nothing here runs concurrently.
    """

    def __init__(
        self,
        viewport: ViewportController,
        coordinator: ScrollCoordinator,
        tile_dir: Path,
    ) -> None:
        self.viewport = viewport
        self.coordinator = coordinator
        self.tile_dir = Path(tile_dir)

    async def run(self, page_info: PageInfo, scroll_enabled: bool = True) -> TileMap:
        tile_map = TileMap()
        position = GridPosition()

        while True:
            await self._capture_tile(position, page_info, tile_map)
            if not scroll_enabled:
                break
            position = position.advance(page_info)
            if position.is_complete(page_info):
                break
            await self.coordinator.scroll_to(position, page_info)

        logger.info("Captured %d tile(s)", len(tile_map))
        return tile_map

    async def _capture_tile(self, position: GridPosition, page_info: PageInfo, tile_map: TileMap) -> None:
        raw = await self.viewport.capture_viewport()
        path = self.tile_dir / f"{position.x}-{position.y}.png"
        await asyncio.to_thread(_normalize_tile, raw, page_info, path)
        tile_map.add(position, path)
        logger.debug("Tile (%d, %d) -> %s", position.x, position.y, path.name)
