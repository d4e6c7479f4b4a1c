"""Base exporter interface for the report export pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from report_export.models.schemas import (
        AuditMetadata,
        CoverSpec,
        ExportOptions,
        Orientation,
        PageSpec,
    )
    from report_export.services.export_session import ExportSession
    from report_export.services.snapshot import Snapshot, SnapshotSource

logger = structlog.get_logger()


@dataclass
class ExportResult:
    """Result of an export operation."""

    content: bytes
    content_type: str
    file_extension: str
    filename: str
    metadata: dict[str, Any] | None = None


class ExportError(Exception):
    """Base exception for export operations."""


class ExportGenerationError(ExportError):
    """Raised when document assembly fails."""


class ExportCancelledError(ExportError):
    """Raised between pages when the session has been cancelled."""


def capture_width_for(orientation: Orientation) -> int:
    """Resolution hint for the off-screen clone, in CSS pixels."""
    from report_export.config import settings

    if orientation == "landscape":
        return settings.landscape_capture_width
    return settings.portrait_capture_width


async def iter_page_snapshots(
    pages: Sequence[PageSpec],
    capturer: SnapshotSource,
    session: ExportSession,
) -> AsyncIterator[tuple[int, PageSpec, Snapshot | None]]:
    """Capture pages one at a time, in input order.

    Yields ``(index, page, snapshot)``; ``snapshot`` is ``None`` when the
    element is missing and the page must be skipped. Progress is reported
    once the consumer has finished with a page.
    """
    total = len(pages)
    for index, page in enumerate(pages):
        session.raise_if_cancelled()
        snapshot = await capturer.capture(
            page.element_id, capture_width_for(page.orientation)
        )
        if snapshot is None:
            logger.warning(
                "Capture target missing, skipping page",
                element_id=page.element_id,
                title=page.title,
                index=index,
            )
        yield index, page, snapshot
        session.report_progress(index + 1, total)


class PackageExporter(ABC):
    """Abstract base class for multi-page package exporters."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable format name (e.g., 'PDF', 'PowerPoint')."""
        ...

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """File extension without dot (e.g., 'pdf', 'ppt')."""
        ...

    @property
    @abstractmethod
    def content_type(self) -> str:
        """MIME type for this format (e.g., 'application/pdf')."""
        ...

    @abstractmethod
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
        """Capture ``pages`` and assemble them into one document."""
        ...

    def generate_filename(self, name: str) -> str:
        """Generate sanitised filename for the exported document."""
        from report_export.utils.export_utils import sanitize_filename

        return f"{sanitize_filename(name)}.{self.file_extension}"
