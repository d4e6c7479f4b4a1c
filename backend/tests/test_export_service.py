"""Tests for the export service: registry and document lifecycle."""

import io

import pytest
from PIL import Image
from unittest.mock import AsyncMock, MagicMock, patch

from report_export.models.schemas import (
    PackageExportRequest,
    PageSpec,
    RenderSource,
    SingleExportRequest,
)
from report_export.services import export_service
from report_export.services.exporters.base import ExportError, ExportResult
from report_export.services.snapshot import SnapshotCapture


@pytest.fixture(autouse=True)
def default_registry():
    export_service._exporters.clear()
    export_service.register_default_exporters()
    yield
    export_service._exporters.clear()


@pytest.fixture
def mock_page():
    page = AsyncMock()
    locator = MagicMock()
    locator.count = AsyncMock(return_value=0)
    page.locator = MagicMock(return_value=locator)
    return page


@pytest.fixture
def mock_create_page(mock_page):
    with patch.object(
        export_service.playwright_manager, "create_page", new_callable=AsyncMock
    ) as create_page:
        create_page.return_value = mock_page
        yield create_page


def _png(width, height):
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_default_formats_registered():
    assert export_service.list_available_formats() == {
        "pdf": "PDF",
        "html": "HTML",
        "ppt": "PowerPoint (HTML)",
    }


def test_get_exporter_is_case_insensitive():
    assert export_service.get_exporter("PDF").file_extension == "pdf"


def test_unknown_format_lists_available():
    with pytest.raises(ExportError, match="Format 'docx' not supported. Available: pdf, html, ppt"):
        export_service.get_exporter("docx")


# ---------------------------------------------------------------------------
# Document lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_open_document_loads_url_and_closes(mock_create_page, mock_page):
    async with export_service.open_document(RenderSource(url="http://localhost:3000/dash")) as capturer:
        assert isinstance(capturer, SnapshotCapture)

    mock_create_page.assert_awaited_once_with(1920, 1080, 2.0)
    mock_page.goto.assert_awaited_once()
    assert mock_page.goto.call_args.args[0] == "http://localhost:3000/dash"
    assert mock_page.goto.call_args.kwargs["wait_until"] == "networkidle"
    mock_page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_open_document_sets_markup(mock_create_page, mock_page):
    async with export_service.open_document(RenderSource(html="<div id='a'></div>")):
        pass

    mock_page.set_content.assert_awaited_once()
    assert mock_page.set_content.call_args.args[0] == "<div id='a'></div>"
    mock_page.goto.assert_not_awaited()


@pytest.mark.asyncio
async def test_navigation_failure_notifies_and_closes_page(mock_create_page, mock_page, session, notifier):
    mock_page.goto = AsyncMock(side_effect=RuntimeError("net::ERR_CONNECTION_REFUSED"))
    request = PackageExportRequest(
        source=RenderSource(url="http://localhost:9"),
        pages=[PageSpec(element_id="a", title="A")],
    )

    with pytest.raises(ExportError, match="Export failed: net::ERR_CONNECTION_REFUSED"):
        await export_service.export_package("pdf", request, session)

    assert notifier.errors == ["Export failed."]
    mock_page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_markup_failure_notifies_single_export(mock_create_page, mock_page, session, notifier):
    mock_page.set_content = AsyncMock(side_effect=RuntimeError("Timeout 30000ms exceeded"))
    request = SingleExportRequest(source=RenderSource(html="<p></p>"), element_id="kpi")

    with pytest.raises(ExportError, match="Timeout 30000ms exceeded"):
        await export_service.export_to_pdf(request, session)

    assert notifier.errors == ["Export failed."]
    mock_page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_browser_start_failure_notifies(mock_create_page, session, notifier):
    mock_create_page.side_effect = RuntimeError("browser has been closed")
    request = SingleExportRequest(source=RenderSource(html="<p></p>"), element_id="kpi")

    with pytest.raises(ExportError, match="browser has been closed"):
        await export_service.export_to_image(request, session)

    assert notifier.errors == ["Export failed."]


@pytest.mark.asyncio
async def test_exporter_failure_is_notified_once(mock_create_page, mock_page, session, notifier):
    locator = mock_page.locator.return_value
    locator.count = AsyncMock(return_value=1)
    locator.first.screenshot = AsyncMock(side_effect=RuntimeError("renderer crashed"))
    request = SingleExportRequest(source=RenderSource(html="<div id='kpi'></div>"), element_id="kpi")

    with pytest.raises(ExportError, match="renderer crashed"):
        await export_service.export_to_image(request, session)

    assert notifier.errors == ["Export failed."]
    assert session.is_exporting is False


@pytest.mark.asyncio
async def test_export_package_delegates_to_exporter(mock_create_page, mock_page):
    request = PackageExportRequest(
        source=RenderSource(html="<div></div>"),
        filename="Board Pack",
        pages=[PageSpec(element_id="a", title="A")],
    )
    fake = MagicMock()
    fake.format_name = "Fake"
    fake.export = AsyncMock(
        return_value=ExportResult(b"x", "text/plain", "txt", "Board Pack.txt")
    )
    export_service.register_exporter("fake", fake)

    result = await export_service.export_package("fake", request)

    assert result.filename == "Board Pack.txt"
    args = fake.export.call_args.args
    assert args[0] == "Board Pack"
    assert list(args[1]) == request.pages
    assert isinstance(args[2], SnapshotCapture)
    assert fake.export.call_args.kwargs["options"] == request.options
    mock_page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_format_does_not_open_page(mock_create_page):
    request = PackageExportRequest(source=RenderSource(html="<p></p>"))

    with pytest.raises(ExportError):
        await export_service.export_package("docx", request)

    mock_create_page.assert_not_awaited()


@pytest.mark.asyncio
async def test_single_image_missing_returns_none(mock_create_page, mock_page):
    request = SingleExportRequest(source=RenderSource(html="<p></p>"), element_id="ghost")

    assert await export_service.export_to_image(request) is None
    mock_page.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_single_image_export(mock_create_page, mock_page):
    locator = mock_page.locator.return_value
    locator.count = AsyncMock(return_value=1)
    locator.first.screenshot = AsyncMock(return_value=_png(120, 80))
    request = SingleExportRequest(source=RenderSource(html="<div id='kpi'></div>"), element_id="kpi", filename="kpi")

    result = await export_service.export_to_image(request)

    assert result.filename == "kpi.png"
    assert result.metadata["width"] == 120


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "wrapper,format_key",
    [
        (export_service.export_package_to_pdf, "pdf"),
        (export_service.export_package_to_html, "html"),
        (export_service.export_package_to_ppt, "ppt"),
    ],
)
async def test_format_wrappers(wrapper, format_key):
    request = PackageExportRequest(source=RenderSource(html="<p></p>"))
    with patch(
        "report_export.services.export_service.export_package", new_callable=AsyncMock
    ) as mock_package:
        await wrapper(request)

    assert mock_package.call_args.args[:2] == (format_key, request)
