"""Self-contained interactive HTML package: sidebar navigation plus one section per page."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from report_export.models.schemas import (
    AuditMetadata,
    CoverSpec,
    ExportOptions,
    PageSpec,
    PageStatus,
)
from report_export.services.audit import resolve_data_as_of
from report_export.services.export_session import ExportSession
from report_export.services.snapshot import SnapshotSource
from report_export.utils.export_utils import escape_html as esc
from report_export.utils.export_utils import generated_on_timestamp
from .base import ExportResult, PackageExporter, iter_page_snapshots

logger = structlog.get_logger()

_PACKAGE_CSS = """\
    :root { color-scheme: light dark; }
    body { margin: 0; font-family: Segoe UI, Arial, sans-serif; background: #0f172a; color: #e2e8f0; }
    .shell { display: grid; grid-template-columns: 280px minmax(0,1fr); min-height: 100vh; }
    .sidebar { border-right: 1px solid #334155; padding: 16px; background: #111827; }
    .title { font-size: 18px; font-weight: 700; margin: 0 0 6px; }
    .meta { font-size: 12px; color: #94a3b8; margin: 0 0 12px; }
    .nav { display: grid; gap: 8px; }
    .nav-btn { text-align: left; border: 1px solid #334155; background: #0f172a; color: #cbd5e1; border-radius: 8px; padding: 10px; cursor: pointer; font-size: 13px; }
    .nav-btn.active { border-color: #2563eb; background: #1e3a8a33; color: #dbeafe; }
    .content { padding: 20px; background: radial-gradient(circle at top right, #1e293b 0%, #0f172a 60%); }
    .report-page { display: none; max-width: 1200px; margin: 0 auto; background: #ffffff; color: #0f172a; border-radius: 10px; overflow: hidden; box-shadow: 0 12px 30px rgba(0,0,0,0.35); }
    .report-page.active { display: block; }
    .page-header, .page-footer { display: flex; justify-content: space-between; align-items: center; padding: 10px 16px; font-size: 12px; color: #475569; background: #f8fafc; border-bottom: 1px solid #e2e8f0; }
    .page-footer { border-top: 1px solid #e2e8f0; border-bottom: 0; }
    .page-context { display: flex; gap: 8px; align-items: center; flex-wrap: wrap; padding: 8px 16px; border-bottom: 1px solid #e2e8f0; background: #f8fafc; }
    .page-image { display: block; width: 100%; height: auto; }
    .status { font-size: 11px; font-weight: 700; padding: 2px 8px; border-radius: 999px; border: 1px solid #cbd5e1; }
    .status-ok { color: #065f46; background: #d1fae5; border-color: #6ee7b7; }
    .status-warning { color: #92400e; background: #fef3c7; border-color: #fcd34d; }
    .status-critical { color: #991b1b; background: #fee2e2; border-color: #fca5a5; }
    .status-info { color: #1e3a8a; background: #dbeafe; border-color: #93c5fd; }
    .threshold, .comment { font-size: 11px; color: #475569; }
    .empty-state { max-width: 640px; margin: 80px auto; text-align: center; color: #94a3b8; font-size: 14px; }
    @media (max-width: 920px) { .shell { grid-template-columns: 1fr; } .sidebar { border-right: 0; border-bottom: 1px solid #334155; } }"""

_NAV_SCRIPT = """\
    const navButtons = Array.from(document.querySelectorAll('.nav-btn'));
    const pages = Array.from(document.querySelectorAll('.report-page'));
    navButtons.forEach((btn) => {
      btn.addEventListener('click', () => {
        const target = btn.getAttribute('data-page');
        navButtons.forEach((b) => b.classList.toggle('active', b === btn));
        pages.forEach((p) => p.classList.toggle('active', p.getAttribute('data-page') === target));
      });
    });"""


@dataclass(frozen=True)
class CapturedPage:
    title: str
    image: str
    status: PageStatus | None = None
    threshold: str | None = None
    subtitle: str | None = None


async def collect_captured_pages(
    pages: Sequence[PageSpec],
    capturer: SnapshotSource,
    session: ExportSession,
) -> list[CapturedPage]:
    """Capture every page in order, dropping the ones whose element is missing."""
    captured: list[CapturedPage] = []
    async for _index, page, snapshot in iter_page_snapshots(pages, capturer, session):
        if snapshot is None:
            continue
        captured.append(
            CapturedPage(
                title=page.title,
                image=snapshot.image_data,
                status=page.status,
                threshold=page.threshold,
                subtitle=page.subtitle,
            )
        )
    return captured


class HtmlPackageExporter(PackageExporter):
    """Single-file HTML report that works when opened straight from disk."""

    @property
    def format_name(self) -> str:
        return "HTML"

    @property
    def file_extension(self) -> str:
        return "html"

    @property
    def content_type(self) -> str:
        return "text/html; charset=utf-8"

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
        async with session.running("HTML package export"):
            captured = await collect_captured_pages(pages, capturer, session)
            document = self.render_document(name, captured, session, cover, options, audit)
            content = document.encode("utf-8")

            logger.info(
                "HTML package export complete",
                requested_pages=len(pages),
                content_pages=len(captured),
                size_bytes=len(content),
            )
            return ExportResult(
                content=content,
                content_type=self.content_type,
                file_extension=self.file_extension,
                filename=self.generate_filename(name),
                metadata={
                    "size_bytes": len(content),
                    "encoding": "utf-8",
                    "content_pages": len(captured),
                    "skipped_pages": len(pages) - len(captured),
                    "page_titles": [page.title for page in captured],
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
        generated_at = generated_on_timestamp()
        generated_label = f"{session.t('reports.generated_on', 'Generated on')}: {generated_at}"
        header_text = (options.header_text or "").strip() or (cover.title if cover else "") or name
        footer_text = (options.footer_text or "").strip() or generated_label
        total = max(len(captured), 1)
        no_data = esc(session.t("common.no_data", "No data"))

        nav = "".join(
            f'<button class="nav-btn{" active" if index == 0 else ""}" data-page="{index}">'
            f"{index + 1}. {esc(page.title)}</button>"
            for index, page in enumerate(captured)
        )
        sections = "".join(
            self._render_section(page, index, total, header_text, footer_text, options)
            for index, page in enumerate(captured)
        )

        sidebar_meta = [
            f'<p class="meta">{esc(cover.subtitle if cover else "")}</p>',
            f'<p class="meta">{esc(generated_label)}</p>',
        ]
        data_as_of = resolve_data_as_of(options, audit)
        if data_as_of:
            sidebar_meta.append(
                f'<p class="meta">{esc(session.t("reports.data_as_of", "Data as of"))}: {esc(data_as_of)}</p>'
            )
        if options.include_audit_appendix:
            source_count = len(audit.sql_sources) if audit else 0
            sidebar_meta.append(
                f'<p class="meta">{esc(session.t("reports.audit_sql_sources", "SQL Sources"))}: {source_count}</p>'
            )

        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{esc(name)}</title>
  <style>
{_PACKAGE_CSS}
  </style>
</head>
<body>
  <div class="shell">
    <aside class="sidebar">
      <h1 class="title">{esc((cover.title if cover else "") or name)}</h1>
      {"".join(sidebar_meta)}
      <nav class="nav">{nav or f'<span class="meta">{no_data}</span>'}</nav>
    </aside>
    <main class="content">{sections or f'<p class="empty-state">{no_data}</p>'}</main>
  </div>
  <script>
{_NAV_SCRIPT}
  </script>
</body>
</html>"""

    def _render_section(
        self,
        page: CapturedPage,
        index: int,
        total: int,
        header_text: str,
        footer_text: str,
        options: ExportOptions,
    ) -> str:
        parts = [f'<section class="report-page{" active" if index == 0 else ""}" data-page="{index}">']
        if options.show_header:
            parts.append(f'<header class="page-header">{esc(header_text)}</header>')
        if page.status or page.threshold or page.subtitle:
            context = []
            if page.status:
                context.append(f'<span class="status status-{page.status}">{esc(page.status.upper())}</span>')
            if page.threshold:
                context.append(f'<span class="threshold">{esc(page.threshold)}</span>')
            if page.subtitle:
                context.append(f'<span class="comment">{esc(page.subtitle)}</span>')
            parts.append(f'<div class="page-context">{"".join(context)}</div>')
        parts.append(f'<img src="{page.image}" alt="{esc(page.title)}" class="page-image" />')
        if options.footer_on_content():
            parts.append(
                f'<footer class="page-footer"><span>{esc(footer_text)}</span>'
                f"<span>{index + 1}/{total}</span></footer>"
            )
        parts.append("</section>")
        return "".join(parts)
