"""Typer CLI — ``docshot capture`` and ``docshot validate`` commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from docshot.config import load_config
from docshot.schemas.config import CaptureConfig
from docshot.schemas.page import CaptureOptions, CaptureResult
from docshot.shared.errors import DocshotError
from docshot.shared.progress import console

app = typer.Typer(
    name="docshot",
    help="docshot — capture a whole scrollable web page as one image.",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_config(
    url: str | None,
    config: Path | None,
    overrides: dict[str, object],
) -> CaptureConfig:
    """Merge a config file (if any), the URL argument and CLI flags."""
    raw: dict[str, object] = {}
    if config is not None:
        raw = load_config(config).model_dump()
    if url:
        raw["url"] = url
    if "url" not in raw:
        raise ValueError("A URL is required (argument or 'url' in the config file)")
    raw.update({key: value for key, value in overrides.items() if value is not None})
    return CaptureConfig(**raw)


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to a capture config YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a configuration file without capturing anything."""
    _setup_logging(verbose)

    try:
        cfg = load_config(config)
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  URL:           {cfg.url}")
    console.print(f"  Output:        {cfg.output_path}")
    console.print(f"  Viewport:      {cfg.viewport_width}x{cfg.viewport_height} @ {cfg.device_scale_factor}x")
    console.print(f"  Settle delay:  {cfg.settle_delay_ms} ms")
    console.print(f"  Scroll:        {'yes' if cfg.scroll_enabled else 'no (viewport only)'}")
    console.print(f"  Workspace:     {cfg.workspace_root or '(system temp dir)'}")


@app.command()
def capture(
    url: str = typer.Argument(None, help="Page to capture (overrides 'url' in the config)."),
    output: Path = typer.Option(None, "--output", "-o", help="Image file to write (format from extension)."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to a capture config YAML file"),
    width: int = typer.Option(None, "--width", help="Viewport width in CSS pixels."),
    height: int = typer.Option(None, "--height", help="Viewport height in CSS pixels."),
    scale: float = typer.Option(None, "--scale", help="Device scale factor (pixel ratio)."),
    settle_delay: float = typer.Option(None, "--settle-delay", help="Milliseconds to wait after each scroll."),
    no_scroll: bool = typer.Option(False, "--no-scroll", help="Capture only the visible viewport."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Capture the full document at URL into a single image.

    Examples:

        docshot capture https://example.com -o example.png

        docshot capture --config config/capture.yml --scale 2
    """
    _setup_logging(verbose)

    overrides: dict[str, object] = {
        "output_path": str(output) if output else None,
        "viewport_width": width,
        "viewport_height": height,
        "device_scale_factor": scale,
        "settle_delay_ms": settle_delay,
        "scroll_enabled": False if no_scroll else None,
    }
    try:
        cfg = _build_config(url, config, overrides)
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)

    try:
        result = asyncio.run(_run_capture(cfg))
    except DocshotError as exc:
        console.print(f"[red]Capture failed:[/] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Screenshot written to:[/] {result.output_path} "
        f"({result.width}x{result.height}, {result.tile_count} tile(s))"
    )


async def _run_capture(cfg: CaptureConfig) -> CaptureResult:
    """Open the page and run the capture pipeline against it."""
    from docshot.capture.pipeline import capture_document
    from docshot.shared.browser import BrowserManager
    from docshot.shared.progress import CaptureProgress

    options = CaptureOptions(settle_delay_ms=cfg.settle_delay_ms, scroll_enabled=cfg.scroll_enabled)

    async with BrowserManager() as bm:
        async with bm.open_viewport(
            cfg.url,
            width=cfg.viewport_width,
            height=cfg.viewport_height,
            device_scale_factor=cfg.device_scale_factor,
            wait_until=cfg.wait_until,
            timeout_ms=cfg.navigation_timeout_ms,
        ) as viewport:
            with CaptureProgress(cfg.url) as progress:
                return await capture_document(
                    viewport,
                    cfg.output_path,
                    options,
                    workspace_root=cfg.workspace_root or None,
                    restore_scroll=cfg.restore_scroll,
                    on_stage=progress.on_stage,
                )
