"""Single-element PNG export."""

from __future__ import annotations

import structlog

from report_export.services.export_session import ExportSession
from report_export.services.snapshot import SnapshotSource, png_dimensions
from report_export.utils.export_utils import sanitize_filename
from .base import ExportResult

logger = structlog.get_logger()


async def export_to_image(
    element_id: str,
    filename: str,
    capturer: SnapshotSource,
    session: ExportSession,
) -> ExportResult | None:
    """Capture one element at the page's pixel density as ``<filename>.png``.

    Returns ``None`` (and warns the user) when the element is missing.
    """
    async with session.running("Image export"):
        png = await capturer.capture_element(element_id)
        if png is None:
            await session.notifier.warning(
                session.t("reports.nothing_to_export", element_id=element_id)
            )
            return None

        width, height = png_dimensions(png)
        session.report_progress(1, 1)
        logger.info(
            "Image export complete",
            element_id=element_id,
            width=width,
            height=height,
            size_bytes=len(png),
        )
        return ExportResult(
            content=png,
            content_type="image/png",
            file_extension="png",
            filename=f"{sanitize_filename(filename)}.png",
            metadata={
                "size_bytes": len(png),
                "width": width,
                "height": height,
                "rendered_with": "playwright-chromium",
            },
        )
