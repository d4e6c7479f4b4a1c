"""Main export service coordinating all export operations."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from report_export.models.schemas import (
    PackageExportRequest,
    RenderSource,
    SingleExportRequest,
)
from report_export.services.export_session import ExportSession
from report_export.services.exporters.base import ExportError, ExportResult, PackageExporter
from report_export.services.exporters.html_exporter import HtmlPackageExporter
from report_export.services.exporters.image_exporter import export_to_image as _export_image
from report_export.services.exporters.pdf_exporter import PdfExporter
from report_export.services.exporters.slide_exporter import SlideDeckExporter
from report_export.services.playwright_manager import playwright_manager
from report_export.services.snapshot import SnapshotCapture

logger = structlog.get_logger()

# Registry populated during app lifespan
_exporters: dict[str, PackageExporter] = {}


def register_exporter(format_key: str, exporter: PackageExporter) -> None:
    """Register a package exporter for a format key."""
    _exporters[format_key.lower()] = exporter
    logger.info("Registered exporter", format=format_key, name=exporter.format_name)


def register_default_exporters() -> None:
    register_exporter("pdf", PdfExporter())
    register_exporter("html", HtmlPackageExporter())
    register_exporter("ppt", SlideDeckExporter())


def get_exporter(format_key: str) -> PackageExporter:
    exporter = _exporters.get(format_key.lower())
    if not exporter:
        available = ", ".join(_exporters.keys())
        raise ExportError(
            f"Format '{format_key}' not supported. Available: {available}"
        )
    return exporter


def list_available_formats() -> dict[str, str]:
    """Return a dict of format_key -> format_name."""
    return {k: exporter.format_name for k, exporter in _exporters.items()}


@asynccontextmanager
async def open_document(source: RenderSource) -> AsyncIterator[SnapshotCapture]:
    """Load the rendered dashboard into a fresh page; the page is always closed."""
    from report_export.config import settings

    async with playwright_manager.page(
        settings.viewport_width,
        settings.viewport_height,
        settings.device_scale_factor,
    ) as page:
        if source.url:
            await page.goto(
                source.url,
                wait_until="networkidle",
                timeout=settings.navigation_timeout_ms,
            )
        else:
            await page.set_content(
                source.html or "",
                wait_until="networkidle",
                timeout=settings.navigation_timeout_ms,
            )
        yield SnapshotCapture(page)


async def _export_failed(session: ExportSession, error: Exception) -> ExportError:
    """Report a failure raised outside the exporter (page setup, navigation)."""
    logger.error("Export failed", error=str(error), exc_info=True)
    await session.notifier.error(session.t("reports.export_failed", "Export failed."))
    return ExportError(f"Export failed: {error}")


async def export_package(
    format_key: str,
    request: PackageExportRequest,
    session: ExportSession | None = None,
) -> ExportResult:
    """Export an ordered list of pages as one document in the requested format."""
    exporter = get_exporter(format_key)
    session = session or ExportSession()
    try:
        logger.info(
            "Exporting package",
            format=format_key,
            pages=len(request.pages),
            has_cover=request.cover is not None,
        )
        async with open_document(request.source) as capturer:
            result = await exporter.export(
                request.filename,
                request.pages,
                capturer,
                session,
                cover=request.cover,
                options=request.options,
                audit=request.audit,
            )
        logger.info(
            "Export successful",
            size_bytes=len(result.content),
            filename=result.filename,
        )
        return result
    except ExportError:
        raise
    except Exception as e:
        raise await _export_failed(session, e) from e


async def export_package_to_pdf(request: PackageExportRequest, session: ExportSession | None = None) -> ExportResult:
    return await export_package("pdf", request, session)


async def export_package_to_html(request: PackageExportRequest, session: ExportSession | None = None) -> ExportResult:
    return await export_package("html", request, session)


async def export_package_to_ppt(request: PackageExportRequest, session: ExportSession | None = None) -> ExportResult:
    return await export_package("ppt", request, session)


async def export_to_pdf(
    request: SingleExportRequest,
    session: ExportSession | None = None,
) -> ExportResult | None:
    """Single element on one A4 page; ``None`` when the element is missing."""
    session = session or ExportSession()
    try:
        async with open_document(request.source) as capturer:
            return await PdfExporter().export_single(
                request.element_id,
                request.filename,
                capturer,
                session,
                orientation=request.orientation,
            )
    except ExportError:
        raise
    except Exception as e:
        raise await _export_failed(session, e) from e


async def export_to_image(
    request: SingleExportRequest,
    session: ExportSession | None = None,
) -> ExportResult | None:
    """Single element as PNG; ``None`` when the element is missing."""
    session = session or ExportSession()
    try:
        async with open_document(request.source) as capturer:
            return await _export_image(request.element_id, request.filename, capturer, session)
    except ExportError:
        raise
    except Exception as e:
        raise await _export_failed(session, e) from e
