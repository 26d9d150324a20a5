"""YAML config loader — reads a capture config file into CaptureConfig."""

from pathlib import Path

import yaml

from docshot.schemas.config import CaptureConfig


def load_config(path: str | Path) -> CaptureConfig:
    """Load and validate a capture config file.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # Keys left blank in YAML load as None; drop them so the defaults apply.
    raw = {key: value for key, value in raw.items() if value is not None}

    return CaptureConfig(**raw)
