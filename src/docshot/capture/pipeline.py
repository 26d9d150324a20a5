"""Full-document capture pipeline: probe, tile, stitch, crop, clean up."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docshot.capture.crop import FinalCropper
from docshot.capture.metrics import PageMetricsProbe
from docshot.capture.scroll import ScrollCoordinator
from docshot.capture.stitch import ColumnStitcher
from docshot.capture.tiles import TileCaptureLoop, TileMap
from docshot.capture.workspace import SessionWorkspace
from docshot.schemas.page import CaptureOptions, CaptureResult, PageInfo
from docshot.shared.errors import ParameterError
from docshot.shared.viewport import ViewportController

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    INIT = "init"
    WORKSPACE_READY = "workspace_ready"
    METRICS_CAPTURED = "metrics_captured"
    TILING = "tiling"
    STITCHED = "stitched"
    CROPPED = "cropped"
    CLEANED = "cleaned"
    SCROLL_RESTORED = "scroll_restored"
    DONE = "done"
    FAILED = "failed"


StageCallback = Callable[[PipelineStage], None]
"""Called with each stage the pipeline enters."""


@dataclass
class PipelineContext:
    """State handed from stage to stage during one run."""

    viewport: ViewportController
    output_path: Path
    options: CaptureOptions
    stage: PipelineStage = PipelineStage.INIT
    workspace: Path | None = None
    page_info: PageInfo | None = None
    tile_map: TileMap | None = None
    tile_count: int = 0
    size: tuple[int, int] = (0, 0)


def validate_capture_args(output_path: Any, options: Any) -> tuple[Path, CaptureOptions]:
    """Check caller arguments before anything touches the viewport.

    Raises ``ParameterError`` for a non-path ``output_path`` or badly typed
    options.
    """
    if not isinstance(output_path, (str, os.PathLike)):
        raise ParameterError(
            f'"output_path" is {type(output_path).__name__}, should be a str or path'
        )
    if isinstance(output_path, str) and not output_path:
        raise ParameterError('"output_path" must not be empty')

    if options is None:
        parsed = CaptureOptions()
    elif isinstance(options, CaptureOptions):
        parsed = options
    elif isinstance(options, Mapping):
        try:
            parsed = CaptureOptions(**options)
        except ValidationError as exc:
            raise ParameterError(f"Invalid capture options: {exc}") from exc
    else:
        raise ParameterError(f'"options" is {type(options).__name__}, should be a mapping')

    return Path(output_path), parsed


async def capture_document(
    viewport: ViewportController,
    output_path: str | os.PathLike[str],
    options: CaptureOptions | Mapping[str, Any] | None = None,
    *,
    workspace_root: str | Path | None = None,
    restore_scroll: bool = True,
    on_stage: StageCallback | None = None,
) -> CaptureResult:
    """Capture the whole document shown in ``viewport`` into ``output_path``.

    The document is captured tile by tile, each tile normalized to layout
    pixels, the tiles stitched column by column and the result cropped to
    the document size. Intermediate files live in a per-run workspace that
    is removed whether or not the run succeeds.

    Raises ``ParameterError`` before any viewport call when the arguments
    are invalid; ``RemoteError``, ``ImageToolError`` or ``WorkspaceError``
    abort the run. Nothing is retried.
    """
    path, parsed = validate_capture_args(output_path, options)
    ctx = PipelineContext(viewport=viewport, output_path=path, options=parsed)

    def enter(stage: PipelineStage) -> None:
        ctx.stage = stage
        logger.info("Pipeline stage: %s", stage.value)
        if on_stage:
            on_stage(stage)

    enter(PipelineStage.INIT)
    coordinator = ScrollCoordinator(viewport, parsed.settle_delay_ms)
    try:
        with SessionWorkspace(workspace_root) as workspace:
            ctx.workspace = workspace
            enter(PipelineStage.WORKSPACE_READY)

            ctx.page_info = await PageMetricsProbe(viewport).capture(parsed.scroll_enabled)
            enter(PipelineStage.METRICS_CAPTURED)

            enter(PipelineStage.TILING)
            loop = TileCaptureLoop(viewport, coordinator, workspace)
            ctx.tile_map = await loop.run(ctx.page_info, parsed.scroll_enabled)
            ctx.tile_count = len(ctx.tile_map)

            await ColumnStitcher(workspace).stitch(ctx.tile_map, ctx.output_path)
            ctx.tile_map = None
            enter(PipelineStage.STITCHED)

            ctx.size = await FinalCropper().crop(ctx.output_path, ctx.page_info)
            enter(PipelineStage.CROPPED)
        ctx.workspace = None
        enter(PipelineStage.CLEANED)

        if parsed.scroll_enabled and restore_scroll:
            await coordinator.restore()
            enter(PipelineStage.SCROLL_RESTORED)
    except Exception:
        logger.error("Capture failed during stage %s", ctx.stage.value)
        if ctx.stage is PipelineStage.STITCHED:
            # The raw composite was written but never cropped
            ctx.output_path.unlink(missing_ok=True)
        enter(PipelineStage.FAILED)
        raise

    enter(PipelineStage.DONE)
    width, height = ctx.size
    return CaptureResult(
        output_path=str(ctx.output_path),
        page_info=ctx.page_info,
        tile_count=ctx.tile_count,
        width=width,
        height=height,
    )
