"""Export API endpoints: package, single-element PDF and PNG downloads."""

from __future__ import annotations

import io

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from report_export.models.schemas import PackageExportRequest, SingleExportRequest
from report_export.services.export_service import (
    export_package,
    export_to_image,
    export_to_pdf,
    list_available_formats,
)
from report_export.services.exporters.base import ExportError, ExportResult

logger = structlog.get_logger()

router = APIRouter()


def _attachment(result: ExportResult) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(result.content),
        media_type=result.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.post("/api/export/package/{format_key}")
async def export_package_endpoint(
    format_key: str,
    request: PackageExportRequest,
) -> StreamingResponse:
    """Export an ordered list of rendered pages as PDF, HTML or PPT."""
    try:
        result = await export_package(format_key, request)
        return _attachment(result)
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Export failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Export failed")


@router.post("/api/export/pdf")
async def export_pdf_endpoint(request: SingleExportRequest) -> StreamingResponse:
    """Export one element on a single A4 page."""
    try:
        result = await export_to_pdf(request)
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Export failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Export failed")
    if result is None:
        raise HTTPException(status_code=404, detail="Nothing to export")
    return _attachment(result)


@router.post("/api/export/image")
async def export_image_endpoint(request: SingleExportRequest) -> StreamingResponse:
    """Export one element as a PNG image."""
    try:
        result = await export_to_image(request)
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Export failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Export failed")
    if result is None:
        raise HTTPException(status_code=404, detail="Nothing to export")
    return _attachment(result)


@router.get("/api/export/formats")
async def get_formats() -> dict:
    """List available package export formats."""
    return {"formats": list_available_formats()}
