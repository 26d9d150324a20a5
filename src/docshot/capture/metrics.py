"""Page metrics probe — one geometry snapshot per run."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from docshot.schemas.page import PageInfo
from docshot.shared.errors import RemoteError
from docshot.shared.viewport import ViewportController

logger = logging.getLogger(__name__)


class PageMetricsProbe:
    """Reads viewport size, document size and pixel ratio from the viewport."""

    def __init__(self, viewport: ViewportController) -> None:
        self.viewport = viewport

    async def capture(self, normalize_for_full_page: bool) -> PageInfo:
        raw = await self.viewport.query_metrics(normalize_for_full_page)
        try:
            info = PageInfo.model_validate(raw)
        except ValidationError as exc:
            raise RemoteError(f"Viewport reported unusable metrics {raw!r}: {exc}") from exc

        logger.info(
            "Viewport %dx%d, document %dx%d, pixel ratio %s (%d column(s) x %d row(s))",
            info.screen_width,
            info.screen_height,
            info.document_width,
            info.document_height,
            info.device_pixel_ratio,
            info.columns,
            info.rows,
        )
        return info
