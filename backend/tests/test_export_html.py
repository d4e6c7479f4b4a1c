"""Tests for the interactive HTML package exporter."""

import pytest

from report_export.models.schemas import (
    AuditMetadata,
    CoverSpec,
    ExportOptions,
    PageSpec,
    SqlSource,
)
from report_export.services.exporters.html_exporter import HtmlPackageExporter


async def _export(document, session, pages, elements=None, **kwargs) -> str:
    doc = document(elements if elements is not None else {p.element_id: (40, 20) for p in pages})
    result = await HtmlPackageExporter().export("Pack", pages, doc, session, **kwargs)
    return result.content.decode("utf-8")


def test_exporter_properties():
    exporter = HtmlPackageExporter()
    assert exporter.format_name == "HTML"
    assert exporter.file_extension == "html"
    assert exporter.content_type == "text/html; charset=utf-8"
    assert exporter.generate_filename("a/b") == "a_b.html"


@pytest.mark.asyncio
async def test_title_is_escaped_in_nav(document, session):
    pages = [PageSpec(element_id="p1", title="<script>alert(1)</script>")]

    html = await _export(document, session, pages)

    assert "1. &lt;script&gt;alert(1)&lt;/script&gt;</button>" in html
    assert "<script>alert(1)</script>" not in html


@pytest.mark.asyncio
async def test_sections_follow_input_order(document, session):
    pages = [PageSpec(element_id=i, title=f"Page {i}") for i in ("c", "a", "b")]

    html = await _export(document, session, pages)

    positions = [html.index(f"Page {i}</button>") for i in ("c", "a", "b")]
    assert positions == sorted(positions)
    assert html.count('class="report-page') == 3
    assert html.count('class="report-page active"') == 1
    assert html.count('class="nav-btn active"') == 1
    assert "3/3" in html


@pytest.mark.asyncio
async def test_images_are_inlined(document, session):
    html = await _export(document, session, [PageSpec(element_id="p1", title="T")])

    assert '<img src="data:image/png;base64,' in html
    assert "http://" not in html
    assert "https://" not in html


@pytest.mark.asyncio
async def test_missing_pages_are_dropped(document, session, progress_log):
    pages = [PageSpec(element_id="p1", title="Kept"), PageSpec(element_id="ghost", title="Dropped")]
    doc = document({"p1": (40, 20)})

    result = await HtmlPackageExporter().export("Pack", pages, doc, session)

    html = result.content.decode("utf-8")
    assert "Kept" in html
    assert "Dropped" not in html
    assert result.metadata["skipped_pages"] == 1
    assert result.metadata["page_titles"] == ["Kept"]
    assert progress_log[-2:] == [100, 0]


@pytest.mark.asyncio
async def test_empty_state(document, session):
    html = await _export(document, session, [], elements={})

    assert '<p class="empty-state">No data</p>' in html
    assert 'class="report-page' not in html


@pytest.mark.asyncio
async def test_context_row_and_chrome(document, session):
    pages = [
        PageSpec(
            element_id="p1",
            title="Margins",
            status="warning",
            threshold="< 12%",
            subtitle="Watch list",
        )
    ]
    options = ExportOptions(header_text="Board <Pack>", footer_text="Internal", data_as_of="2024-06-30")

    html = await _export(document, session, pages, cover=CoverSpec(title="Review", subtitle="H1"), options=options)

    assert '<span class="status status-warning">WARNING</span>' in html
    assert '<span class="threshold">&lt; 12%</span>' in html
    assert '<span class="comment">Watch list</span>' in html
    assert '<header class="page-header">Board &lt;Pack&gt;</header>' in html
    assert "<span>Internal</span>" in html
    assert "Data as of: 2024-06-30" in html
    assert '<h1 class="title">Review</h1>' in html


@pytest.mark.asyncio
async def test_header_and_footer_can_be_hidden(document, session):
    options = ExportOptions(show_header=False, footer_mode="none")

    html = await _export(document, session, [PageSpec(element_id="p1", title="T")], options=options)

    assert 'class="page-header"' not in html
    assert 'class="page-footer"' not in html


@pytest.mark.asyncio
async def test_sql_source_count_when_audit_enabled(document, session):
    audit = AuditMetadata(sql_sources=[SqlSource(source="a", sql="x"), SqlSource(source="b", sql="y")])

    html = await _export(
        document, session, [PageSpec(element_id="p1", title="T")],
        options=ExportOptions(include_audit_appendix=True), audit=audit,
    )

    assert "SQL Sources: 2" in html


@pytest.mark.asyncio
async def test_filename_is_sanitised(document, session):
    doc = document({"p1": (40, 20)})

    result = await HtmlPackageExporter().export("Q3: Review?", [PageSpec(element_id="p1", title="T")], doc, session)

    assert result.filename == "Q3_ Review_.html"
    assert result.content_type == "text/html; charset=utf-8"
