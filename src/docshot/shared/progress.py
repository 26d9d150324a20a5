"""Rich progress display for the capture pipeline stages."""

from __future__ import annotations

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

from docshot.capture.pipeline import PipelineStage

console = Console()

_STAGE_LABELS = {
    PipelineStage.INIT: "Starting",
    PipelineStage.WORKSPACE_READY: "Workspace ready",
    PipelineStage.METRICS_CAPTURED: "Page measured",
    PipelineStage.TILING: "Capturing tiles",
    PipelineStage.STITCHED: "Tiles stitched",
    PipelineStage.CROPPED: "Cropped to document",
    PipelineStage.CLEANED: "Workspace removed",
    PipelineStage.SCROLL_RESTORED: "Scroll restored",
    PipelineStage.DONE: "Done",
}


class CaptureProgress:
    """Shows the current pipeline stage next to a spinner.

    Pass ``on_stage`` as the pipeline's stage callback.
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id: TaskID | None = None

    def __enter__(self) -> "CaptureProgress":
        self._progress.__enter__()
        self._task_id = self._progress.add_task(f"[cyan]{self._label}[/]", total=None)
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def on_stage(self, stage: PipelineStage) -> None:
        if self._task_id is None:
            return
        if stage is PipelineStage.FAILED:
            description = f"[red]✗ {self._label}[/]"
        elif stage is PipelineStage.DONE:
            description = f"[green]✓ {self._label}[/]"
        else:
            description = f"[cyan]{self._label}[/] — {_STAGE_LABELS[stage]}"
        finished = stage in (PipelineStage.DONE, PipelineStage.FAILED)
        self._progress.update(self._task_id, description=description, completed=finished)
