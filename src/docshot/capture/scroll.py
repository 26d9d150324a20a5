"""Grid traversal and scroll commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from docshot.schemas.page import PageInfo
from docshot.shared.viewport import ViewportController

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_MS = 100


@dataclass(frozen=True)
class GridPosition:
    """Column ``x`` and row ``y`` of a tile, both 0-based.

    Traversal is column-major: ``y`` runs down a column, then wraps to 0
    while ``x`` moves one column right.
    """

    x: int = 0
    y: int = 0

    def advance(self, page_info: PageInfo) -> "GridPosition":
        y = self.y + 1
        if y >= page_info.rows:
            return GridPosition(self.x + 1, 0)
        return GridPosition(self.x, y)

    def is_complete(self, page_info: PageInfo) -> bool:
        return self.x * page_info.screen_width >= page_info.document_width


class ScrollCoordinator:
    """Moves the viewport to a grid position and waits for it to settle."""

    def __init__(
        self,
        viewport: ViewportController,
        settle_delay_ms: float = DEFAULT_SETTLE_DELAY_MS,
    ) -> None:
        self.viewport = viewport
        self.settle_delay_ms = settle_delay_ms

    @staticmethod
    def offset_for(position: GridPosition, page_info: PageInfo) -> tuple[int, int]:
        return position.x * page_info.screen_width, position.y * page_info.screen_height

    async def scroll_to(self, position: GridPosition, page_info: PageInfo) -> None:
        x, y = self.offset_for(position, page_info)
        logger.debug("Scrolling to tile (%d, %d) at offset (%d, %d)", position.x, position.y, x, y)
        await self.viewport.scroll_to(x, y)
        await self.viewport.settle(self.settle_delay_ms)

    async def restore(self) -> None:
        """Scroll back to the document origin."""
        await self.viewport.scroll_to(0, 0)
