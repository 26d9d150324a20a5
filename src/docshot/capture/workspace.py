"""Per-run temporary directory for tiles and column images."""

from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from pathlib import Path

from docshot.shared.errors import WorkspaceError

logger = logging.getLogger(__name__)


class SessionWorkspace:
    """Creates ``<root>/.tmp-<uuid>`` on enter and removes it on exit.

    Removal runs on every exit path, including failures. If it fails the
    error is logged and the original outcome of the run stands.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root else Path(tempfile.gettempdir())
        self.path: Path | None = None

    def __enter__(self) -> Path:
        path = self.root / f".tmp-{uuid.uuid4().hex}"
        try:
            path.mkdir(mode=0o755, parents=True)
        except OSError as exc:
            raise WorkspaceError(f"Could not create workspace {path}: {exc}") from exc
        self.path = path
        logger.debug("Workspace ready at %s", path)
        return path

    def __exit__(self, *args: object) -> None:
        if self.path is None:
            return
        try:
            shutil.rmtree(self.path)
            logger.debug("Workspace %s removed", self.path)
        except OSError as exc:
            logger.warning("Could not remove workspace %s: %s", self.path, exc)
        self.path = None
