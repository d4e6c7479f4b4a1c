"""Slide-deck export: 16:9 HTML slides served as a legacy ``.ppt`` download.

The file is HTML, not OOXML. PowerPoint and browsers open it, and printing
yields one slide per sheet.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from report_export.models.schemas import AuditMetadata, CoverSpec, ExportOptions, PageSpec
from report_export.services.audit import build_audit_blocks, resolve_data_as_of
from report_export.services.export_session import ExportSession
from report_export.services.snapshot import SnapshotSource
from report_export.utils.export_utils import escape_html as esc
from report_export.utils.export_utils import generated_on_timestamp
from .base import ExportResult, PackageExporter
from .html_exporter import CapturedPage, collect_captured_pages

logger = structlog.get_logger()

SLIDE_WIDTH_IN = 13.333
SLIDE_HEIGHT_IN = 7.5

_SLIDE_CSS = f"""\
    @page {{ size: {SLIDE_WIDTH_IN}in {SLIDE_HEIGHT_IN}in; margin: 0; }}
    html, body {{ margin: 0; padding: 0; font-family: Segoe UI, Arial, sans-serif; background: #0f172a; }}
    .slide {{ width: {SLIDE_WIDTH_IN}in; height: {SLIDE_HEIGHT_IN}in; background: #ffffff; page-break-after: always; display: flex; flex-direction: column; overflow: hidden; }}
    .slide:last-child {{ page-break-after: auto; }}
    .cover {{ justify-content: center; background: #1e293b; color: #ffffff; padding: 0.7in; box-sizing: border-box; }}
    .cover h1 {{ margin: 0 0 0.2in; font-size: 42px; }}
    .cover p {{ margin: 0.08in 0; color: #cbd5e1; font-size: 18px; }}
    .header, .footer {{ height: 0.42in; padding: 0 0.35in; box-sizing: border-box; display: flex; align-items: center; justify-content: space-between; font-size: 12px; color: #475569; background: #f8fafc; }}
    .context {{ min-height: 0.28in; padding: 0.04in 0.35in; font-size: 11px; color: #334155; background: #f8fafc; border-bottom: 1px solid #e2e8f0; }}
    .content {{ flex: 1; min-height: 0; display: flex; align-items: center; justify-content: center; padding: 0.2in; box-sizing: border-box; background: #ffffff; }}
    .content img {{ max-width: 100%; max-height: 100%; object-fit: contain; }}
    .audit {{ align-items: flex-start; justify-content: flex-start; }}
    .audit pre {{ margin: 0; font-family: Consolas, monospace; font-size: 10px; color: #334155; white-space: pre-wrap; }}"""


class SlideDeckExporter(PackageExporter):
    """Cover slide, one slide per captured page, optional audit slide."""

    @property
    def format_name(self) -> str:
        return "PowerPoint (HTML)"

    @property
    def file_extension(self) -> str:
        return "ppt"

    @property
    def content_type(self) -> str:
        return "application/vnd.ms-powerpoint"

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
        async with session.running("Slide deck export"):
            captured = await collect_captured_pages(pages, capturer, session)
            document = self.render_document(name, captured, session, cover, options, audit)
            content = document.encode("utf-8")

            slide_count = 1 + len(captured) + (1 if options.include_audit_appendix else 0)
            logger.info(
                "Slide deck export complete",
                requested_pages=len(pages),
                slides=slide_count,
                size_bytes=len(content),
            )
            return ExportResult(
                content=content,
                content_type=self.content_type,
                file_extension=self.file_extension,
                filename=self.generate_filename(name),
                metadata={
                    "size_bytes": len(content),
                    "slide_count": slide_count,
                    "content_pages": len(captured),
                    "skipped_pages": len(pages) - len(captured),
                    "slide_width_in": SLIDE_WIDTH_IN,
                    "slide_height_in": SLIDE_HEIGHT_IN,
                },
            )

    def render_document(
        self,
        name: str,
        captured: Sequence[CapturedPage],
        session: ExportSession,
        cover: CoverSpec | None,
        options: ExportOptions,
        audit: AuditMetadata | None,
    ) -> str:
        generated_label = f"{session.t('reports.generated_on', 'Generated on')}: {generated_on_timestamp()}"
        footer_text = (options.footer_text or "").strip() or generated_label
        total = max(len(captured), 1)

        slides = [self._render_cover(name, cover, generated_label, options, audit, session)]
        slides.extend(
            self._render_slide(page, index, total, footer_text, options)
            for index, page in enumerate(captured)
        )
        if options.include_audit_appendix:
            slides.append(self._render_audit(audit, session))

        body = "\n  ".join(slides)
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{esc(name)}</title>
  <style>
{_SLIDE_CSS}
  </style>
</head>
<body>
  {body}
</body>
</html>"""

    def _render_cover(
        self,
        name: str,
        cover: CoverSpec | None,
        generated_label: str,
        options: ExportOptions,
        audit: AuditMetadata | None,
        session: ExportSession,
    ) -> str:
        title = (cover.title if cover else "") or name
        lines = [f"<h1>{esc(title)}</h1>"]
        if cover and cover.subtitle:
            lines.append(f"<p>{esc(cover.subtitle)}</p>")
        if cover and cover.author:
            lines.append(f"<p>{esc(cover.author)}</p>")
        lines.append(f"<p>{esc(generated_label)}</p>")
        data_as_of = resolve_data_as_of(options, audit)
        if data_as_of:
            lines.append(f"<p>{esc(session.t('reports.data_as_of', 'Data as of'))}: {esc(data_as_of)}</p>")
        return f'<div class="slide cover">{"".join(lines)}</div>'

    def _render_slide(
        self,
        page: CapturedPage,
        index: int,
        total: int,
        footer_text: str,
        options: ExportOptions,
    ) -> str:
        parts = ['<div class="slide">']
        if options.show_header:
            parts.append(f'<div class="header">{esc(page.title)}</div>')
        if page.status or page.threshold:
            context = [esc(value) for value in (page.status and page.status.upper(), page.threshold) if value]
            parts.append(f'<div class="context">{" &middot; ".join(context)}</div>')
        parts.append(f'<div class="content"><img src="{page.image}" alt="{esc(page.title)}" /></div>')
        if options.footer_on_content():
            parts.append(
                f'<div class="footer"><span>{esc(footer_text)}</span>'
                f"<span>{index + 1}/{total}</span></div>"
            )
        parts.append("</div>")
        return "".join(parts)

    def _render_audit(self, audit: AuditMetadata | None, session: ExportSession) -> str:
        blocks = build_audit_blocks(audit)
        text = "\n\n".join(blocks) or session.t("common.no_data", "No data")
        return (
            '<div class="slide">'
            f'<div class="header">{esc(session.t("reports.audit_appendix_title", "Audit Appendix"))}</div>'
            f'<div class="content audit"><pre>{esc(text)}</pre></div>'
            "</div>"
        )
