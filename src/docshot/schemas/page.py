"""Page geometry snapshot and per-run capture options."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PageInfo(BaseModel):
    """Viewport and document geometry, captured once at the start of a run.

    The viewport script reports camelCase keys (``screenWidth`` ...), which
    are accepted as aliases for the snake_case fields.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    screen_width: int = Field(gt=0)
    screen_height: int = Field(gt=0)
    document_width: int = Field(gt=0)
    document_height: int = Field(gt=0)
    device_pixel_ratio: float = Field(default=1.0, gt=0)

    @property
    def columns(self) -> int:
        """Number of tile columns needed to cover the document width."""
        return math.ceil(self.document_width / self.screen_width)

    @property
    def rows(self) -> int:
        """Number of tile rows needed to cover the document height."""
        return math.ceil(self.document_height / self.screen_height)

    @property
    def tiled_width(self) -> int:
        return self.columns * self.screen_width

    @property
    def tiled_height(self) -> int:
        return self.rows * self.screen_height


class CaptureOptions(BaseModel):
    """Caller options for ``capture_document``.

    Types are checked strictly: ``settle_delay_ms`` must be a real number
    (``True`` is not a delay) and ``scroll_enabled`` must be a bool.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    settle_delay_ms: float = Field(default=100, ge=0)
    scroll_enabled: bool = True

    @field_validator("settle_delay_ms", mode="before")
    @classmethod
    def check_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f'"settle_delay_ms" is {type(value).__name__}, should be a number')
        return value

    @field_validator("scroll_enabled", mode="before")
    @classmethod
    def check_bool(cls, value: Any) -> Any:
        if not isinstance(value, bool):
            raise ValueError(f'"scroll_enabled" is {type(value).__name__}, should be a bool')
        return value


class CaptureResult(BaseModel):
    """What a finished run produced."""

    output_path: str
    page_info: PageInfo
    tile_count: int
    width: int
    height: int
