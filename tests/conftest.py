"""Shared test fixtures."""

from __future__ import annotations

import io
from typing import Any

import pytest
from PIL import Image, ImageDraw

from docshot.schemas.page import PageInfo
from docshot.shared.errors import RemoteError
from docshot.shared.viewport import ViewportController

BLOCK = 32


def make_document(width: int, height: int) -> Image.Image:
    """Draw a document of solid blocks, each block a distinct colour."""
    img = Image.new("RGB", (width, height))
    draw = ImageDraw.Draw(img)
    for by in range(0, height, BLOCK):
        for bx in range(0, width, BLOCK):
            i, j = bx // BLOCK, by // BLOCK
            colour = ((i * 37 + 20) % 256, (j * 59 + 40) % 256, ((i + j) * 17 + 60) % 256)
            draw.rectangle([bx, by, bx + BLOCK - 1, by + BLOCK - 1], fill=colour)
    return img


class FakeViewport(ViewportController):
    """In-memory viewport over a synthetic document.

    Captures return the visible region scaled by the pixel ratio, so the
    pipeline's output can be compared against ``document``. Every call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        *,
        document_width: int,
        document_height: int,
        screen_width: int,
        screen_height: int,
        device_pixel_ratio: float = 1.0,
        fail_on_capture: int | None = None,
    ) -> None:
        self.document = make_document(document_width, document_height)
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.device_pixel_ratio = device_pixel_ratio
        self.fail_on_capture = fail_on_capture
        self.offset = (0, 0)
        self.calls: list[tuple[Any, ...]] = []
        self.captures = 0

    async def query_metrics(self, normalize: bool) -> dict[str, Any]:
        self.calls.append(("query_metrics", normalize))
        if normalize:
            self.offset = (0, 0)
        return {
            "screenWidth": self.screen_width,
            "screenHeight": self.screen_height,
            "documentWidth": self.document.width,
            "documentHeight": self.document.height,
            "devicePixelRatio": self.device_pixel_ratio,
        }

    async def scroll_to(self, x: int, y: int) -> None:
        self.calls.append(("scroll_to", x, y))
        self.offset = (x, y)

    async def capture_viewport(self) -> bytes:
        self.calls.append(("capture",))
        self.captures += 1
        if self.fail_on_capture is not None and self.captures == self.fail_on_capture:
            raise RemoteError("viewport went away")
        x, y = self.offset
        region = self.document.crop((x, y, x + self.screen_width, y + self.screen_height))
        if self.device_pixel_ratio != 1:
            size = (
                round(self.screen_width * self.device_pixel_ratio),
                round(self.screen_height * self.device_pixel_ratio),
            )
            region = region.resize(size, Image.Resampling.NEAREST)
        buf = io.BytesIO()
        region.save(buf, format="PNG")
        return buf.getvalue()

    async def settle(self, ms: float) -> None:
        self.calls.append(("settle", ms))

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def make_viewport():
    """Factory for ``FakeViewport`` instances."""

    def _make(**kwargs: Any) -> FakeViewport:
        return FakeViewport(**kwargs)

    return _make


@pytest.fixture
def tall_page() -> PageInfo:
    """1024x3206 document in a 1024x768 viewport."""
    return PageInfo(
        screen_width=1024,
        screen_height=768,
        document_width=1024,
        document_height=3206,
        device_pixel_ratio=1.0,
    )


def images_equal(a: Image.Image, b: Image.Image) -> bool:
    """True when both images have the same size and identical RGB pixels."""
    if a.size != b.size:
        return False
    return a.convert("RGB").tobytes() == b.convert("RGB").tobytes()


@pytest.fixture
def assert_same_image():
    def _check(a: Image.Image, b: Image.Image) -> None:
        assert a.size == b.size
        assert images_equal(a, b)

    return _check
