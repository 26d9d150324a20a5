"""Remote viewport controller — the channel a capture run drives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class ViewportController(ABC):
    """Abstract remote viewport.

    Implementations own one mutable scroll position shared by the whole run,
    so callers must await each command before issuing the next one.

    Subclasses implement:
    - ``query_metrics(normalize)`` — viewport/document geometry and pixel ratio
    - ``scroll_to(x, y)`` — move the visible region to a document offset
    - ``capture_viewport()`` — raw raster of what is currently visible
    - ``settle(ms)`` — pause the channel so layout and paint can stabilize

    Every method raises ``RemoteError`` when the channel fails.
    """

    @abstractmethod
    async def query_metrics(self, normalize: bool) -> Mapping[str, Any]:
        """Return ``screenWidth``, ``screenHeight``, ``documentWidth``,
        ``documentHeight`` and ``devicePixelRatio``.

        With ``normalize`` the implementation first prepares the page for a
        full-page capture: scrollbars hidden, the document laid out at its
        full scroll height, and the scroll position reset to the origin.
        """

    @abstractmethod
    async def scroll_to(self, x: int, y: int) -> None:
        """Show the document region whose top-left corner is ``(x, y)``."""

    @abstractmethod
    async def capture_viewport(self) -> bytes:
        """Return the visible region as encoded image bytes."""

    @abstractmethod
    async def settle(self, ms: float) -> None:
        """Pause for ``ms`` milliseconds."""
