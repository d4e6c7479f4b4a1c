"""PDF exporter: rasterized pages assembled with reportlab.

Page geometry is expressed in millimetres from the top-left corner of an A4
sheet (swapped for landscape) and converted to reportlab points when drawn.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from typing import Any

import structlog
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from report_export.models.schemas import (
    AuditMetadata,
    CoverSpec,
    ExportOptions,
    Orientation,
    PageSpec,
    PageStatus,
)
from report_export.services.audit import build_audit_lines
from report_export.services.export_session import ExportSession
from report_export.services.image_embedder import ImageEmbedder
from report_export.services.layout import fit_to_box
from report_export.services.snapshot import Snapshot, SnapshotSource
from report_export.utils.export_utils import (
    decode_data_uri,
    generated_on_date,
    hex_to_rgb,
)
from .base import ExportResult, PackageExporter, iter_page_snapshots

logger = structlog.get_logger()

RGB = tuple[int, int, int]

A4_MM = (210.0, 297.0)
SIDE_MARGIN_MM = 10.0
CHROME_HIDDEN_MARGIN_MM = 12.0
HEADER_MARGIN_MM = 20.0
FOOTER_MARGIN_MM = 18.0

_HEADER_GREY: RGB = (120, 120, 120)
_FOOTER_GREY: RGB = (130, 130, 130)
_STATUS_COLORS: dict[str, RGB] = {
    "critical": (220, 38, 38),
    "warning": (217, 119, 6),
    "ok": (5, 150, 105),
}
_WHITE: RGB = (255, 255, 255)
_SLATE_400: RGB = (148, 163, 184)
_SLATE_500: RGB = (100, 116, 139)
_SLATE_600: RGB = (71, 85, 105)
_SLATE_800: RGB = (30, 41, 59)

_COVER_LOGO_MM = 30.0
_COVER_MARGIN_MM = 20.0


def page_size_mm(orientation: Orientation) -> tuple[float, float]:
    if orientation == "landscape":
        return A4_MM[1], A4_MM[0]
    return A4_MM


class _PdfDocument:
    """Thin reportlab canvas wrapper using top-left millimetre coordinates."""

    def __init__(self, title: str) -> None:
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(
            self._buffer, pagesize=(A4_MM[0] * mm, A4_MM[1] * mm)
        )
        self._canvas.setTitle(title)
        self._page_open = False
        self.page_count = 0
        self.width, self.height = A4_MM

    def begin_page(self, orientation: Orientation) -> None:
        if self._page_open:
            self._canvas.showPage()
        self.width, self.height = page_size_mm(orientation)
        self._canvas.setPageSize((self.width * mm, self.height * mm))
        self._page_open = True
        self.page_count += 1

    def fill_page(self, color: RGB) -> None:
        self._canvas.setFillColorRGB(*_unit_rgb(color))
        self._canvas.rect(0, 0, self.width * mm, self.height * mm, stroke=0, fill=1)

    def text(
        self,
        value: str,
        x: float,
        y: float,
        size: float,
        color: RGB,
        align: str = "left",
        font: str = "Helvetica",
    ) -> None:
        """Draw one line with its baseline at ``y`` millimetres from the top."""
        self._canvas.setFont(font, size)
        self._canvas.setFillColorRGB(*_unit_rgb(color))
        baseline = (self.height - y) * mm
        if align == "right":
            self._canvas.drawRightString(x * mm, baseline, value)
        else:
            self._canvas.drawString(x * mm, baseline, value)

    def rule(self, x1: float, x2: float, y: float, color: RGB) -> None:
        self._canvas.setStrokeColorRGB(*_unit_rgb(color))
        self._canvas.setLineWidth(0.2 * mm)
        baseline = (self.height - y) * mm
        self._canvas.line(x1 * mm, baseline, x2 * mm, baseline)

    def image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
        self._canvas.drawImage(
            ImageReader(io.BytesIO(data)),
            x * mm,
            (self.height - y - height) * mm,
            width=width * mm,
            height=height * mm,
            mask="auto",
        )

    def wrap(self, value: str, width: float, size: float, font: str = "Helvetica") -> list[str]:
        if not value:
            return [""]
        limit = width * mm
        lines: list[str] = []
        for line in simpleSplit(value, font, size, limit) or [""]:
            # simpleSplit only breaks at spaces; long tokens are cut by glyph width
            while stringWidth(line, font, size) > limit:
                cut = _fitting_prefix_length(line, font, size, limit)
                lines.append(line[:cut])
                line = line[cut:]
            lines.append(line)
        return lines

    def save(self) -> bytes:
        # An empty run still yields a readable one-page document
        if not self.page_count:
            self.begin_page("portrait")
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


def _unit_rgb(color: RGB) -> tuple[float, float, float]:
    return color[0] / 255, color[1] / 255, color[2] / 255


def _fitting_prefix_length(text: str, font: str, size: float, limit: float) -> int:
    used = 0.0
    for index, char in enumerate(text):
        used += stringWidth(char, font, size)
        if used > limit:
            return max(index, 1)
    return len(text)


class PdfExporter(PackageExporter):
    """Paginated PDF with optional cover, per-page chrome and audit appendix."""

    def __init__(self, embedder: ImageEmbedder | None = None) -> None:
        self._embedder = embedder or ImageEmbedder()

    @property
    def format_name(self) -> str:
        return "PDF"

    @property
    def file_extension(self) -> str:
        return "pdf"

    @property
    def content_type(self) -> str:
        return "application/pdf"

    # ------------------------------------------------------------------
    # Single element
    # ------------------------------------------------------------------

    async def export_single(
        self,
        element_id: str,
        filename: str,
        capturer: SnapshotSource,
        session: ExportSession,
        orientation: Orientation = "landscape",
    ) -> ExportResult | None:
        """One snapshot scaled to fit a whole A4 page.

        Returns ``None`` (and warns the user) when the element is missing.
        """
        async with session.running("PDF export"):
            snapshot = await capturer.capture(element_id)
            if snapshot is None:
                await session.notifier.warning(
                    session.t("reports.nothing_to_export", element_id=element_id)
                )
                return None

            doc = _PdfDocument(title=filename)
            doc.begin_page(orientation)
            self._place_snapshot(doc, snapshot, 0.0, 0.0, doc.width, doc.height)
            content = doc.save()
            session.report_progress(1, 1)

            logger.info(
                "PDF export complete",
                element_id=element_id,
                orientation=orientation,
                size_bytes=len(content),
            )
            return ExportResult(
                content=content,
                content_type=self.content_type,
                file_extension=self.file_extension,
                filename=self.generate_filename(filename),
                metadata={
                    "size_bytes": len(content),
                    "page_format": "A4",
                    "orientation": orientation,
                    "page_count": 1,
                },
            )

    # ------------------------------------------------------------------
    # Package
    # ------------------------------------------------------------------

    async def export(
        self,
        name: str,
        pages: Sequence[PageSpec],
        capturer: SnapshotSource,
        session: ExportSession,
        cover: CoverSpec | None = None,
        options: ExportOptions | None = None,
        audit: AuditMetadata | None = None,
    ) -> ExportResult:
        options = options or ExportOptions()
        async with session.running("PDF package export"):
            doc = _PdfDocument(title=cover.title if cover else name)
            records: list[dict[str, Any]] = []
            total_pages = (1 if cover else 0) + len(pages)
            first_content_number = 2 if cover else 1
            footer_left = self._footer_left(options, session)

            if cover:
                doc.begin_page("portrait")
                await self._draw_cover(doc, cover, session)
                footer = None
                if options.footer_on_cover():
                    footer = self._draw_footer(doc, footer_left, 1, total_pages)
                records.append({"kind": "cover", "title": cover.title, "orientation": "portrait", "footer": footer})

            content_count = 0
            async for index, page, snapshot in iter_page_snapshots(pages, capturer, session):
                if snapshot is None:
                    continue
                doc.begin_page(page.orientation)
                footer = self._draw_content_page(
                    doc,
                    page,
                    snapshot,
                    options,
                    footer_left,
                    first_content_number + index,
                    total_pages,
                )
                content_count += 1
                records.append({
                    "kind": "content",
                    "title": page.title,
                    "element_id": page.element_id,
                    "orientation": page.orientation,
                    "footer": footer,
                })

            if options.include_audit_appendix:
                added = self._draw_audit_appendix(doc, name, len(pages), options, audit, session)
                records.extend({"kind": "audit", "title": "audit", "orientation": "portrait", "footer": None} for _ in range(added))

            content = doc.save()

            logger.info(
                "PDF package export complete",
                requested_pages=len(pages),
                content_pages=content_count,
                total_pages=doc.page_count,
                size_bytes=len(content),
            )
            return ExportResult(
                content=content,
                content_type=self.content_type,
                file_extension=self.file_extension,
                filename=self.generate_filename(name),
                metadata={
                    "size_bytes": len(content),
                    "page_count": doc.page_count,
                    "content_pages": content_count,
                    "skipped_pages": len(pages) - content_count,
                    "has_cover": cover is not None,
                    "pages": records,
                },
            )

    # ------------------------------------------------------------------
    # Drawing helpers
    # ------------------------------------------------------------------

    def _footer_left(self, options: ExportOptions, session: ExportSession) -> str:
        if options.footer_text:
            return options.footer_text
        as_of = (options.data_as_of or "").strip()
        if as_of:
            return f"{session.t('reports.data_as_of', 'Data as of')}: {as_of}"
        return f"{session.t('reports.generated_on', 'Generated on')}: {generated_on_date()}"

    async def _draw_cover(self, doc: _PdfDocument, cover: CoverSpec, session: ExportSession) -> None:
        from report_export.config import settings

        doc.fill_page(hex_to_rgb(cover.theme_color or settings.cover_theme_color))

        text_width = doc.width - 2 * _COVER_MARGIN_MM
        y = 100.0
        for line in doc.wrap(cover.title, text_width, 32):
            doc.text(line, _COVER_MARGIN_MM, y, 32, _WHITE)
            y += 13.0

        if cover.subtitle:
            y += 2.0
            for line in doc.wrap(cover.subtitle, text_width, 16):
                doc.text(line, _COVER_MARGIN_MM, y, 16, _SLATE_400)
                y += 7.0

        generated = f"{session.t('reports.generated_on', 'Generated on')}: {generated_on_date()}"
        doc.text(generated, _COVER_MARGIN_MM, 260, 12, _SLATE_500)
        if cover.author:
            author = f"{session.t('reports.author_prefix', 'Author')}: {cover.author}"
            doc.text(author, _COVER_MARGIN_MM, 267, 12, _SLATE_500)

        if cover.logo_url:
            # Decorative: any failure leaves the cover without a logo
            try:
                logo = await self._embedder.resolve(cover.logo_url)
                _mime, data = decode_data_uri(logo.data_uri)
                doc.image(
                    data,
                    doc.width - _COVER_MARGIN_MM - _COVER_LOGO_MM,
                    25.0,
                    _COVER_LOGO_MM,
                    _COVER_LOGO_MM,
                )
            except Exception as e:
                logger.warning(
                    "Cover logo could not be embedded, continuing without it",
                    logo_url=cover.logo_url[:120],
                    error=str(e),
                )

    def _draw_content_page(
        self,
        doc: _PdfDocument,
        page: PageSpec,
        snapshot: Snapshot,
        options: ExportOptions,
        footer_left: str,
        page_number: int,
        total_pages: int,
    ) -> str | None:
        if options.show_header:
            self._draw_header(doc, options.header_text or page.title, page.status)

        footer = None
        show_footer = options.footer_on_content()
        if show_footer:
            footer = self._draw_footer(doc, footer_left, page_number, total_pages)

        top = HEADER_MARGIN_MM if options.show_header else CHROME_HIDDEN_MARGIN_MM
        bottom = FOOTER_MARGIN_MM if show_footer else CHROME_HIDDEN_MARGIN_MM
        self._place_snapshot(
            doc,
            snapshot,
            SIDE_MARGIN_MM,
            top,
            doc.width - 2 * SIDE_MARGIN_MM,
            doc.height - top - bottom,
        )
        return footer

    def _draw_header(self, doc: _PdfDocument, text: str, status: PageStatus | None) -> None:
        doc.text(text, SIDE_MARGIN_MM, 10, 10, _HEADER_GREY)
        doc.rule(SIDE_MARGIN_MM, doc.width - SIDE_MARGIN_MM, 12, _HEADER_GREY)
        if status and status != "info":
            doc.text(
                status.upper(),
                doc.width - SIDE_MARGIN_MM,
                10,
                8,
                _STATUS_COLORS.get(status, _HEADER_GREY),
                align="right",
            )

    def _draw_footer(self, doc: _PdfDocument, left: str, page_number: int, total_pages: int) -> str:
        label = f"{page_number}/{total_pages}"
        doc.text(left, SIDE_MARGIN_MM, doc.height - 8, 9, _FOOTER_GREY)
        doc.text(label, doc.width - SIDE_MARGIN_MM, doc.height - 8, 9, _FOOTER_GREY, align="right")
        return f"{left} | {label}"

    def _place_snapshot(
        self,
        doc: _PdfDocument,
        snapshot: Snapshot,
        x: float,
        y: float,
        box_width: float,
        box_height: float,
    ) -> None:
        placement = fit_to_box(snapshot.pixel_width, snapshot.pixel_height, box_width, box_height)
        doc.image(
            snapshot.png_bytes,
            x + placement.offset_x,
            y + placement.offset_y,
            placement.width,
            placement.height,
        )

    def _draw_audit_appendix(
        self,
        doc: _PdfDocument,
        name: str,
        page_count: int,
        options: ExportOptions,
        audit: AuditMetadata | None,
        session: ExportSession,
    ) -> int:
        """Text-only appendix; returns the number of pages it used."""
        doc.begin_page("portrait")
        used = 1
        doc.text(session.t("reports.audit_appendix_title", "Audit Appendix"), 14, 18, 18, _SLATE_800)

        line_height = 4.5
        bottom_limit = doc.height - 14
        y = 28.0
        for raw_line in build_audit_lines(name, page_count, options, audit, session.t):
            for line in doc.wrap(raw_line, 180, 10):
                if y > bottom_limit:
                    doc.begin_page("portrait")
                    used += 1
                    y = 18.0
                doc.text(line, 14, y, 10, _SLATE_600)
                y += line_height
        return used
