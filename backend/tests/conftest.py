"""Shared test fixtures.

``FakeDocument`` stands in for a rendered dashboard: it knows which element
ids exist and hands back real PNG rasters for them, so exporters can be
exercised end to end without a browser.
"""

import io

import pytest
from PIL import Image

from report_export.services.export_session import ExportSession
from report_export.services.snapshot import Snapshot
from report_export.utils.export_utils import to_data_uri


def make_png(width: int = 40, height: int = 20, color: str = "#2563eb") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class FakeDocument:
    """SnapshotSource backed by a dict of element id -> raster size."""

    def __init__(self, elements: dict[str, tuple[int, int]]):
        self.elements = elements
        self.captures: list[tuple[str, int | None]] = []

    async def capture(self, element_id: str, forced_width_px: int | None = None) -> Snapshot | None:
        self.captures.append((element_id, forced_width_px))
        if element_id not in self.elements:
            return None
        width, height = self.elements[element_id]
        return Snapshot(
            image_data=to_data_uri(make_png(width, height), "image/png"),
            pixel_width=width,
            pixel_height=height,
        )

    async def capture_element(self, element_id: str) -> bytes | None:
        self.captures.append((element_id, None))
        if element_id not in self.elements:
            return None
        return make_png(*self.elements[element_id])


class RecordingNotifier:
    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []

    async def error(self, message: str) -> None:
        self.errors.append(message)

    async def warning(self, message: str) -> None:
        self.warnings.append(message)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def progress_log() -> list[int]:
    return []


@pytest.fixture
def session(notifier: RecordingNotifier, progress_log: list[int]) -> ExportSession:
    return ExportSession(notifier=notifier, on_progress=progress_log.append)


@pytest.fixture
def png():
    """Factory for real PNG bytes: ``png(width, height)``."""
    return make_png


@pytest.fixture
def document():
    """Factory for a fake rendered document: ``document({"id": (w, h)})``."""
    return FakeDocument
