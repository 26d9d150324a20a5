"""Configuration schema — validates a capture config YAML file."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class CaptureConfig(BaseModel):
    """Top-level configuration loaded from a capture config file.

    Only ``url`` is required; everything else has a default that matches
    the CLI's defaults.
    """

    url: str

    # Output
    output_path: str = "./screenshot.png"

    # Browser viewport
    viewport_width: int = Field(default=1024, gt=0)
    viewport_height: int = Field(default=768, gt=0)
    device_scale_factor: float = Field(default=1.0, gt=0)

    # Navigation
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "load"
    navigation_timeout_ms: int = Field(default=30_000, gt=0)

    # Capture tuning
    settle_delay_ms: float = Field(default=100, ge=0)
    scroll_enabled: bool = True
    restore_scroll: bool = True

    # Empty means the system temp dir
    workspace_root: str = ""

    @model_validator(mode="after")
    def check_url_scheme(self) -> "CaptureConfig":
        if not self.url.startswith(("http://", "https://", "file://")):
            raise ValueError(f"url must start with http://, https:// or file://, got {self.url!r}")
        return self
