"""Tests for the TileMap and the sequential capture loop."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image

from docshot.capture.scroll import GridPosition, ScrollCoordinator
from docshot.capture.tiles import TileCaptureLoop, TileMap
from docshot.schemas.page import PageInfo
from docshot.shared import imaging
from docshot.shared.errors import RemoteError


class TestTileMap:
    def test_accepts_column_major_order(self) -> None:
        tiles = TileMap()
        for x, y in [(0, 0), (0, 1), (1, 0), (1, 1)]:
            tiles.add(GridPosition(x, y), Path(f"{x}-{y}.png"))
        assert tiles.positions() == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert len(tiles) == 4

    def test_must_start_at_origin(self) -> None:
        with pytest.raises(ValueError, match="out of order"):
            TileMap().add(GridPosition(0, 1), Path("0-1.png"))

    def test_rejects_skipped_row(self) -> None:
        tiles = TileMap()
        tiles.add(GridPosition(0, 0), Path("0-0.png"))
        with pytest.raises(ValueError, match="out of order"):
            tiles.add(GridPosition(0, 2), Path("0-2.png"))

    def test_rejects_going_back_a_column(self) -> None:
        tiles = TileMap()
        tiles.add(GridPosition(0, 0), Path("0-0.png"))
        tiles.add(GridPosition(1, 0), Path("1-0.png"))
        with pytest.raises(ValueError):
            tiles.add(GridPosition(0, 1), Path("0-1.png"))

    def test_columns_grouped_and_ordered(self) -> None:
        tiles = TileMap()
        for x, y in [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]:
            tiles.add(GridPosition(x, y), Path(f"{x}-{y}.png"))
        assert tiles.columns() == [
            [Path("0-0.png"), Path("0-1.png"), Path("0-2.png")],
            [Path("1-0.png"), Path("1-1.png"), Path("1-2.png")],
        ]

    def test_consumed_once(self) -> None:
        tiles = TileMap()
        tiles.add(GridPosition(0, 0), Path("0-0.png"))
        tiles.columns()
        with pytest.raises(RuntimeError, match="consumed"):
            tiles.columns()
        with pytest.raises(RuntimeError, match="consumed"):
            tiles.add(GridPosition(0, 1), Path("0-1.png"))


def _loop(viewport, tmp_path: Path, settle_delay_ms: float = 100) -> TileCaptureLoop:
    return TileCaptureLoop(viewport, ScrollCoordinator(viewport, settle_delay_ms), tmp_path)


async def _page_info(viewport) -> PageInfo:
    return PageInfo.model_validate(await viewport.query_metrics(True))


class TestTileCaptureLoop:
    @pytest.mark.asyncio
    async def test_tall_page_captures_five_tiles(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=1024, document_height=3206, screen_width=1024, screen_height=768)
        tiles = await _loop(viewport, tmp_path).run(await _page_info(viewport))

        assert tiles.positions() == [(0, 0), (0, 1), (0, 2), (0, 3), (0, 4)]
        assert len(viewport.calls_named("capture")) == 5
        assert sorted(p.name for p in tmp_path.iterdir()) == [f"0-{y}.png" for y in range(5)]

    @pytest.mark.asyncio
    async def test_scrolls_between_captures_only(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=1024, document_height=3206, screen_width=1024, screen_height=768)
        await _loop(viewport, tmp_path, settle_delay_ms=300).run(await _page_info(viewport))

        assert viewport.calls[1:] == [
            ("capture",),
            ("scroll_to", 0, 768), ("settle", 300), ("capture",),
            ("scroll_to", 0, 1536), ("settle", 300), ("capture",),
            ("scroll_to", 0, 2304), ("settle", 300), ("capture",),
            ("scroll_to", 0, 3072), ("settle", 300), ("capture",),
        ]

    @pytest.mark.asyncio
    async def test_exact_multiple_yields_k_tiles(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=500, document_height=1500, screen_width=500, screen_height=500)
        tiles = await _loop(viewport, tmp_path).run(await _page_info(viewport))
        assert tiles.positions() == [(0, 0), (0, 1), (0, 2)]

    @pytest.mark.asyncio
    async def test_multi_column_order(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=1300, document_height=900, screen_width=500, screen_height=400)
        tiles = await _loop(viewport, tmp_path).run(await _page_info(viewport))
        assert tiles.positions() == [(x, y) for x in range(3) for y in range(3)]
        assert ("scroll_to", 500, 0) in viewport.calls
        assert ("scroll_to", 1000, 800) in viewport.calls

    @pytest.mark.asyncio
    async def test_no_scroll_captures_once(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=1024, document_height=3206, screen_width=1024, screen_height=768)
        info = PageInfo.model_validate(await viewport.query_metrics(False))
        tiles = await _loop(viewport, tmp_path).run(info, scroll_enabled=False)

        assert tiles.positions() == [(0, 0)]
        assert viewport.calls_named("capture") == [("capture",)]
        assert viewport.calls_named("scroll_to") == []
        assert viewport.calls_named("settle") == []

    @pytest.mark.asyncio
    async def test_tiles_are_viewport_sized(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(document_width=1024, document_height=3206, screen_width=1024, screen_height=768)
        await _loop(viewport, tmp_path).run(await _page_info(viewport))
        for path in tmp_path.iterdir():
            assert Image.open(path).size == (1024, 768)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ratio", [2, 3])
    async def test_high_pixel_ratio_is_resized(
        self, make_viewport, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, ratio: int
    ) -> None:
        spy = MagicMock(wraps=imaging.resize_percent)
        monkeypatch.setattr(imaging, "resize_percent", spy)
        viewport = make_viewport(
            document_width=500, document_height=500, screen_width=500, screen_height=500,
            device_pixel_ratio=ratio,
        )
        await _loop(viewport, tmp_path).run(await _page_info(viewport))

        spy.assert_called_once()
        _, pct_w, pct_h = spy.call_args.args
        assert pct_w == pytest.approx(100 / ratio)
        assert pct_h == pytest.approx(100 / ratio)
        assert Image.open(tmp_path / "0-0.png").size == (500, 500)

    @pytest.mark.asyncio
    async def test_unit_pixel_ratio_is_not_resized(
        self, make_viewport, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        spy = MagicMock(wraps=imaging.resize_percent)
        monkeypatch.setattr(imaging, "resize_percent", spy)
        viewport = make_viewport(document_width=500, document_height=500, screen_width=500, screen_height=500)
        await _loop(viewport, tmp_path).run(await _page_info(viewport))
        spy.assert_not_called()

    @pytest.mark.asyncio
    async def test_capture_failure_aborts(self, make_viewport, tmp_path: Path) -> None:
        viewport = make_viewport(
            document_width=1024, document_height=3206, screen_width=1024, screen_height=768,
            fail_on_capture=3,
        )
        with pytest.raises(RemoteError):
            await _loop(viewport, tmp_path).run(await _page_info(viewport))
        assert len(viewport.calls_named("capture")) == 3
