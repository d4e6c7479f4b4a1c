"""Snapshot capture: rasterize an already-rendered element without touching it.

The element is deep-cloned, the clone is parked to the right of the
document's scroll area with deterministic sizing, and the clone (not the live
node) is screenshotted. Pixel density comes from the page's device scale
factor, so a page opened at 2.0 yields 2x rasters.
"""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass
from typing import Protocol

import structlog
from PIL import Image
from playwright.async_api import Page

from report_export.utils.export_utils import decode_data_uri, to_data_uri

logger = structlog.get_logger()

# Returns the applied clone width, or null when the element does not exist.
_PREPARE_CLONE_JS = """\
([elementId, token, forcedWidth, fallbackWidth]) => {
  const element = document.getElementById(elementId);
  if (!element) return null;

  const clone = element.cloneNode(true);
  clone.removeAttribute('id');
  clone.setAttribute('data-export-clone', token);

  const width = forcedWidth || element.scrollWidth || fallbackWidth;
  const parkedAt = document.documentElement.scrollWidth + 2000;
  Object.assign(clone.style, {
    position: 'absolute',
    top: '0px',
    left: `${parkedAt}px`,
    width: `${width}px`,
    height: 'auto',
    minHeight: `${element.scrollHeight || 800}px`,
    overflow: 'visible',
    padding: '40px',
    boxSizing: 'border-box',
    backgroundColor: '#ffffff',
  });

  clone.querySelectorAll('.overflow-auto, .overflow-y-auto, .overflow-x-auto').forEach((node) => {
    node.style.overflow = 'visible';
    node.style.height = 'auto';
    node.style.maxHeight = 'none';
  });

  clone.querySelectorAll('h1, h2, h3, h4, h5, h6, .truncate').forEach((node) => {
    node.style.overflow = 'visible';
    node.style.textOverflow = 'clip';
    node.style.lineHeight = '1.35';
    node.style.paddingBottom = '2px';
  });

  document.body.appendChild(clone);
  return width;
}"""

_FONTS_READY_JS = """\
async () => {
  if (document.fonts && document.fonts.ready) {
    await document.fonts.ready;
  }
  return true;
}"""

_REMOVE_CLONE_JS = """\
(token) => {
  document.querySelectorAll(`[data-export-clone="${token}"]`).forEach((node) => node.remove());
}"""


@dataclass(frozen=True)
class Snapshot:
    """A raster of one element; ``image_data`` is a PNG data URI."""

    image_data: str
    pixel_width: int
    pixel_height: int

    @property
    def png_bytes(self) -> bytes:
        return decode_data_uri(self.image_data)[1]


class SnapshotSource(Protocol):
    """Anything that can rasterize elements of a rendered document by id."""

    async def capture(self, element_id: str, forced_width_px: int | None = None) -> Snapshot | None: ...

    async def capture_element(self, element_id: str) -> bytes | None: ...


def id_selector(element_id: str) -> str:
    """CSS attribute selector matching ``id`` exactly, whatever characters it holds."""
    escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
    return f'[id="{escaped}"]'


def png_dimensions(png: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(png)) as image:
        return image.size


class SnapshotCapture:
    """Captures elements of one live Playwright page, one at a time."""

    def __init__(
        self,
        page: Page,
        settle_ms: int | None = None,
        image_settle_ms: int | None = None,
        default_width: int | None = None,
    ) -> None:
        from report_export.config import settings

        self._page = page
        self._settle_ms = settings.capture_settle_ms if settle_ms is None else settle_ms
        self._image_settle_ms = (
            settings.image_settle_ms if image_settle_ms is None else image_settle_ms
        )
        self._default_width = default_width or settings.capture_default_width

    async def capture(
        self,
        element_id: str,
        forced_width_px: int | None = None,
    ) -> Snapshot | None:
        token = uuid.uuid4().hex
        width = await self._page.evaluate(
            _PREPARE_CLONE_JS,
            [element_id, token, forced_width_px, self._default_width],
        )
        if width is None:
            logger.warning("Snapshot target not found", element_id=element_id)
            return None

        try:
            await self._page.wait_for_timeout(self._settle_ms)
            await self._page.evaluate(_FONTS_READY_JS)
            png: bytes = await self._page.locator(
                f'[data-export-clone="{token}"]'
            ).screenshot(type="png", animations="disabled")
        finally:
            await self._page.evaluate(_REMOVE_CLONE_JS, token)

        pixel_width, pixel_height = png_dimensions(png)
        logger.debug(
            "Snapshot captured",
            element_id=element_id,
            clone_width=width,
            pixel_width=pixel_width,
            pixel_height=pixel_height,
        )
        return Snapshot(
            image_data=to_data_uri(png, "image/png"),
            pixel_width=pixel_width,
            pixel_height=pixel_height,
        )

    async def capture_element(self, element_id: str) -> bytes | None:
        """Screenshot the element in place, no clone or pagination concerns."""
        locator = self._page.locator(id_selector(element_id))
        if await locator.count() == 0:
            logger.warning("Image target not found", element_id=element_id)
            return None
        await self._page.wait_for_timeout(self._image_settle_ms)
        return await locator.first.screenshot(type="png", animations="disabled")
