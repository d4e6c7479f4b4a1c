"""Per-run export state: progress channel, cancellation and collaborators.

Each export call owns one ``ExportSession``. It replaces process-wide
``isExporting``/``progress`` flags so that concurrent runs cannot overwrite
each other's state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from report_export.services.exporters.base import (
    ExportCancelledError,
    ExportError,
    ExportGenerationError,
)
from report_export.services.i18n import Translator, default_translator

logger = structlog.get_logger()

ProgressCallback = Callable[[int], None]


class Notifier(Protocol):
    """Surface for messages the user must see (error dialog, toast...)."""

    async def error(self, message: str) -> None: ...

    async def warning(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier for headless use: user-facing messages go to the log."""

    async def error(self, message: str) -> None:
        logger.error("Export notification", message=message)

    async def warning(self, message: str) -> None:
        logger.warning("Export notification", message=message)


@dataclass
class ExportSession:
    translate: Translator = default_translator
    notifier: Notifier = field(default_factory=LoggingNotifier)
    on_progress: ProgressCallback | None = None
    is_exporting: bool = False
    progress: int = 0
    _cancelled: bool = field(default=False, init=False, repr=False)

    def t(self, key: str, fallback: str | None = None, **params: object) -> str:
        return self.translate(key, fallback, **params)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def report_progress(self, completed: int, total: int) -> None:
        self._set_progress(round(completed / max(total, 1) * 100))

    def _set_progress(self, value: int) -> None:
        self.progress = max(0, min(100, value))
        if self.on_progress is not None:
            self.on_progress(self.progress)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ExportCancelledError("Export cancelled")

    # ------------------------------------------------------------------
    # Run scope
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def running(self, operation: str) -> AsyncIterator[ExportSession]:
        """Mark the session busy for the duration of one export.

        Failures are logged and reported through the notifier, then raised
        as ``ExportGenerationError`` (export errors propagate as they are).
        The busy flag and progress are always reset on exit.
        """
        self.is_exporting = True
        self._set_progress(0)
        try:
            yield self
        except ExportCancelledError:
            logger.info("Export cancelled", operation=operation)
            raise
        except ExportError as e:
            logger.error("Export failed", operation=operation, error=str(e), exc_info=True)
            await self.notifier.error(self.t("reports.export_failed", "Export failed."))
            raise
        except Exception as e:
            logger.error("Export failed", operation=operation, error=str(e), exc_info=True)
            await self.notifier.error(self.t("reports.export_failed", "Export failed."))
            raise ExportGenerationError(f"{operation} failed: {e}") from e
        finally:
            self.is_exporting = False
            self._set_progress(0)
